"""CLI package for interacting with the BME280 hub adapter."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)

# ``cli.app`` stays the module, not the Typer instance, so ``hubctl`` and
# ``monkeypatch.setattr("cli.app.ApiClient", ...)`` both resolve through it.

__all__ = []
