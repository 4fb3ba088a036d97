"""
api/limiter.py -- Shared slowapi rate limiter instance.

api/main.py mounts it as middleware; api/routes/admin_auth.py applies the
login limit with @limiter.limit(). One shared instance means one counter
store; per-module instances would each count separately and never trigger.

Tests switch it off with `limiter.enabled = False`.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")
