from .config import AppConfig, load_config
from .session_store import InMemorySessionStore

__all__ = ["AppConfig", "load_config", "InMemorySessionStore"]
