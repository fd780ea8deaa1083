"""Database clients and connections.

Imports are intentionally NOT eagerly loaded here to avoid opening
connections at import time.
Use explicit imports: ``from tulubot.db.redis import get_redis``, etc.
"""
