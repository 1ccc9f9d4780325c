"""Data models for BracketForge."""

from bracketforge.models.player import Player

__all__ = ["Player"]
