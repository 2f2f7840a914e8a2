"""Configuration data models for the translation relay.

Each dataclass mirrors one section of the INI file. Field names are the INI keys and field types drive
value coercion in the loader.
"""

from __future__ import annotations

from dataclasses import dataclass, field

__all__: list[str] = [
    "Cache",
    "Config",
    "General",
    "Server",
    "Translation",
]


@dataclass
class General:
    DEBUG: bool = False
    VERSION: str = ""
    LOG_FILE: str = ""
    SCRIPT_NAME: str = ""


@dataclass
class Server:
    HOST: str = "127.0.0.1"
    PORT: int = 8787


@dataclass
class Cache:
    DB_PATH: str = "translation_cache.db"
    MEMORY_LIMIT: int = 500
    TTL_DAYS: int = 7


@dataclass
class Translation:
    MODEL: str = ""
    TIMEOUT: float = 300.0  # Transport total timeout in seconds; 0 or less disables it.


@dataclass
class Config:
    GENERAL: General = field(default_factory=General)
    SERVER: Server = field(default_factory=Server)
    CACHE: Cache = field(default_factory=Cache)
    TRANSLATION: Translation = field(default_factory=Translation)
