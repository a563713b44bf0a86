"""gitstate: a live, optimistically-updated view of git repository status."""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
