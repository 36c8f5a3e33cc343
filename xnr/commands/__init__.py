"""Commands for the xnr CLI."""

from .build import build
from .run import run

__all__ = ["build", "run"]
