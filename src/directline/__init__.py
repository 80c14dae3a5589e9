"""Directline — two-party direct messaging backend.

Users register with a contact handle, exchange text messages over HTTP,
and receive new messages in real time over a WebSocket while online.
"""

__version__ = "0.1.0"
