"""
Configuration sources grouped by backing medium.

Each source returns a fresh tree per load and never touches shared state.
"""

from .dotenv import DotEnvSource, parse_dotenv
from .env import EnvSource
from .file import FileSource
from .mapping import MapSource

__all__ = [
    "DotEnvSource",
    "EnvSource",
    "FileSource",
    "MapSource",
    "parse_dotenv",
]
