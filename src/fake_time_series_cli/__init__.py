"""Command-line interface for fake-time-series."""

from __future__ import annotations

from fake_time_series import __version__

__all__ = ["__version__"]
