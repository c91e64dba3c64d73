"""
Nova Audit Log: structured trail of security-relevant actions.

Event types:
  - auth.login, auth.denied: login attempts
  - access.denied: a session reached for a permission its role lacks
  - vault.save, vault.clear, vault.link, vault.consume: credential lifecycle
  - account.create, account.delete: account management
  - module.update: module definition edits

Events are appended to a JSON array under the ``nova_audit_log`` key of the
store passed in (the configured backend when none is given), newest last,
trimmed to NOVA_AUDIT_MAX_EVENTS. Secrets never appear in events.

Usage:
    from nova.audit.logger import log_event, query_log, stats
    log_event("vault.save", "Saved shared credential", actor="admin", store=app_store)
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from datetime import UTC, datetime

logger = logging.getLogger(__name__)

AUDIT_KEY = "nova_audit_log"

# Fallback when no store is passed; tests can swap it
_store_factory = None


def _get_store(store=None):
    """Get the audit store: the explicit one, the override factory, or the backend."""
    if store is not None:
        return store
    if _store_factory is not None:
        return _store_factory()

    from nova.storage import get_store

    return get_store()


def _max_events() -> int:
    from nova.config import get_config

    return get_config().audit_max_events


def set_store_factory(factory):
    """Override the store used for audit events."""
    global _store_factory
    _store_factory = factory


def reset_store_factory():
    """Reset the store factory to the configured backend."""
    global _store_factory
    _store_factory = None


def _read(store) -> list[dict]:
    raw = store.get(AUDIT_KEY)
    if not raw:
        return []
    events = json.loads(raw)
    return events if isinstance(events, list) else []


def log_event(
    event_type: str,
    action: str,
    *,
    category: str | None = None,
    actor: str = "nova",
    details: dict | None = None,
    target: str | None = None,
    status: str = "ok",
    store=None,
) -> dict | None:
    """Record a structured audit event.

    Returns {"id": int, "timestamp": str} on success, None on failure.
    Failures are logged but never raise.
    """
    try:
        store = _get_store(store)
        events = _read(store)
        event_id = (events[-1].get("id", 0) + 1) if events else 1
        timestamp = datetime.now(UTC).isoformat()
        events.append(
            {
                "id": event_id,
                "timestamp": timestamp,
                "event_type": event_type,
                "category": category or event_type.split(".", 1)[0],
                "actor": actor,
                "action": action,
                "details": details,
                "target": target,
                "status": status,
            }
        )
        limit = _max_events()
        if limit > 0 and len(events) > limit:
            events = events[-limit:]
        store.set(AUDIT_KEY, json.dumps(events, ensure_ascii=False))
        return {"id": event_id, "timestamp": timestamp}
    except Exception as e:
        logger.warning("Audit log_event failed: %s", e)
        return None


def query_log(
    limit: int = 50,
    event_type: str | None = None,
    category: str | None = None,
    actor: str | None = None,
    target: str | None = None,
    status: str | None = None,
    store=None,
) -> list[dict]:
    """Query the audit log with filters, newest first."""
    try:
        events = _read(_get_store(store))
    except Exception as e:
        logger.warning("Audit query_log failed: %s", e)
        return []

    matched = []
    for event in reversed(events):
        if event_type and event.get("event_type") != event_type:
            continue
        if category and event.get("category") != category:
            continue
        if actor and event.get("actor") != actor:
            continue
        if target and target not in (event.get("target") or ""):
            continue
        if status and event.get("status") != status:
            continue
        matched.append(event)
        if len(matched) >= limit:
            break
    return matched


def stats(store=None) -> dict:
    """Get audit log statistics."""
    try:
        events = _read(_get_store(store))
    except Exception as e:
        logger.warning("Audit stats failed: %s", e)
        return {"total_events": 0, "error": str(e)}

    by_type = Counter(e.get("event_type") for e in events)
    return {
        "total_events": len(events),
        "unique_event_types": len(by_type),
        "earliest": events[0].get("timestamp") if events else None,
        "latest": events[-1].get("timestamp") if events else None,
        "by_type": dict(by_type.most_common(20)),
    }
