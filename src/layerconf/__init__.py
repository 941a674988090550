"""
layerconf - hierarchical multi-source configuration

Merges environment variables, dotenv files, settings files and in-memory
maps by priority into one tree, with typed accessors, change detection
and optional auto-reload.
"""

__version__ = "0.1.0"

from layerconf.builder import ConfigBuilder
from layerconf.core import (
    MISSING,
    ConfigError,
    ConfigStore,
    DecodeError,
    DispatchHandle,
    DotEnvParseError,
    MissingEnvironmentError,
    Priority,
    ReloadScheduler,
    SchedulerState,
    Source,
    SourceLoadError,
    ValueView,
    diff_trees,
    merge_trees,
)
from layerconf.sources import DotEnvSource, EnvSource, FileSource, MapSource

__all__ = [
    "MISSING",
    "ConfigBuilder",
    "ConfigError",
    "ConfigStore",
    "DecodeError",
    "DispatchHandle",
    "DotEnvParseError",
    "DotEnvSource",
    "EnvSource",
    "FileSource",
    "MapSource",
    "MissingEnvironmentError",
    "Priority",
    "ReloadScheduler",
    "SchedulerState",
    "Source",
    "SourceLoadError",
    "ValueView",
    "diff_trees",
    "merge_trees",
]
