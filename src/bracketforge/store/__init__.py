"""Persistence for BracketForge."""

from bracketforge.store.base import TournamentStore
from bracketforge.store.json_file import JsonFileStore
from bracketforge.store.memory import InMemoryStore

__all__ = ["InMemoryStore", "JsonFileStore", "TournamentStore"]
