"""Repository layer: generic record access (SQLite) plus per-entity repositories.

Entity repositories only name their table and columns; SQL text is produced by
`command.CommandBuilder` and run by `executor.CommandExecutor`.
"""
from __future__ import annotations

from .command import Command, CommandBuilder, Predicate, Scalar
from .executor import CommandExecutor, ConflictError, RepositoryError, get_executor

__all__ = [
    "Command",
    "CommandBuilder",
    "CommandExecutor",
    "ConflictError",
    "Predicate",
    "RepositoryError",
    "Scalar",
    "get_executor",
]
