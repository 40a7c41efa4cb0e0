"""Microsteps: tiny-step task focus, friction stats and a calm chat companion."""

__version__ = "0.1.0"

from .cli import main  # noqa: E402

__all__ = ["main", "__version__"]
