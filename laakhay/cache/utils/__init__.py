"""Utility helpers."""

from .clock import cache_age, now_ms

__all__ = ["cache_age", "now_ms"]
