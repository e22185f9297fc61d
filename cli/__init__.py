"""CLI package for reviewing PoolPilot alert cases."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)

# The Typer application lives in ``cli.app``; tests patch ``cli.app.ApiClient``
# so the package must not shadow the module with the Typer instance.

__all__ = []
