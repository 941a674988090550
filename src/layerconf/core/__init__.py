"""
Core infrastructure for layered configuration.

This package exposes the merge engine, the store with its listener
dispatcher and the reload scheduler that the sources and the builder are
wired into.
"""

from .contracts import MISSING, ChangeSet, ConfigTree, Listener, Priority, Source
from .dispatch import DispatchHandle, ListenerDispatcher
from .errors import (
    ConfigError,
    DecodeError,
    DotEnvParseError,
    MissingEnvironmentError,
    SourceLoadError,
)
from .reload import ReloadScheduler, SchedulerState
from .store import ConfigStore
from .tree import diff_trees, merge_trees
from .value import ValueView

__all__ = [
    "MISSING",
    "ChangeSet",
    "ConfigError",
    "ConfigStore",
    "ConfigTree",
    "DecodeError",
    "DispatchHandle",
    "DotEnvParseError",
    "Listener",
    "ListenerDispatcher",
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
