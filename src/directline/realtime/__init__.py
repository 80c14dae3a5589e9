"""Real-time delivery — connection registry, lifecycle, and dispatch.

Learn: Messages flow through two paths:
1. POST /messages → database (durable, always)
2. Dispatcher → registry lookup → recipient's WebSocket (best effort)

Only the first path can fail a request. The second is skipped silently
when the recipient is offline.
"""
