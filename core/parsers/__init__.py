"""Command builders grouped by the collaborator each command reaches."""

from . import events, games, meta, types

__all__ = ["events", "games", "meta", "types"]
