"""CLI package for inspecting and refreshing the plant monitor service."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)

# The Typer application lives in ``cli.app`` and is not re-exported here so
# that ``cli.app`` keeps resolving to the module; tests patch attributes on it.

__all__ = []
