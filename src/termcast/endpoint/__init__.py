"""WebSocket endpoint module for termcast.

Accepts viewer connections, replays recent output to each new viewer
and keeps it registered for live broadcast until it disconnects.
"""
