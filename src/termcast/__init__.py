"""termcast -- stream a supervised shell command to WebSocket viewers.

The watched command is kept running forever. Every line it writes to
stdout or stderr is recorded in a bounded history and pushed to all
connected viewers; new viewers get the history replayed first.
"""

__version__ = "0.1.0"
