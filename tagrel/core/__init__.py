"""Core application components."""

from .config import Settings, settings
from .context import RequestContext
from .database import AsyncSessionLocal, engine, init_db, transactional
from .exceptions import StorageError
from .short_id import ShortIdCodec

__all__ = [
    "settings",
    "Settings",
    "engine",
    "AsyncSessionLocal",
    "transactional",
    "init_db",
    "RequestContext",
    "ShortIdCodec",
    "StorageError",
]
