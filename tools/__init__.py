"""Concrete collaborators: the JSON event store, the escape.bar catalog and LINE messaging.

The orchestrator only depends on the protocols in ``core.collaborators``;
``app.main`` wires these implementations in.
"""

from __future__ import annotations

from tools.escape_catalog import EscapeBarCatalog
from tools.event_store import EventStore
from tools.line_messaging import LineMessagingClient, verify_signature

__all__ = ["EscapeBarCatalog", "EventStore", "LineMessagingClient", "verify_signature"]
