"""
JSON report generator for Tollgate.

Generates structured JSON output describing a persisted token: identity,
capability flags, settings, holders and (optionally) the event log.

Design Principles:
    - Complete data: every setting and balance, nothing summarized away
    - Lossless amounts: integers stay integers, whatever their size
    - ISO timestamps: Standard datetime format
"""

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from tollgate.schema import LedgerEvent
from tollgate.store import TokenDB
from tollgate.token import Token


def generate_json_report(
    db_path: str | Path = "tollgate.db",
    include_events: bool = False,
    indent: int = 2,
) -> str:
    """
    Generate a JSON report for the token stored in db_path.

    Args:
        db_path: Path to the SQLite database
        include_events: Whether to include the full event log
        indent: JSON indentation level (default: 2)

    Returns:
        JSON string with the full token report

    Raises:
        TokenNotDeployedError: If the database holds no token
    """
    report = build_report_dict(db_path, include_events=include_events)
    return json.dumps(report, indent=indent, default=_json_serializer)


def build_report_dict(
    db_path: str | Path = "tollgate.db",
    include_events: bool = False,
) -> dict[str, Any]:
    """
    Build a report dictionary for the token stored in db_path.

    Raises:
        TokenNotDeployedError: If the database holds no token
    """
    with TokenDB(db_path) as db:
        token = Token.open(db)
        events = token.events()
        holders = db.holders()

        report: dict[str, Any] = {
            "report_version": "1.0",
            "generated_at": datetime.now(UTC).isoformat(),
            "token": token.info(),
            "holders": [
                {"address": address, "balance": balance}
                for address, balance in sorted(holders.items(), key=lambda item: -item[1])
            ],
            "summary": _build_summary(events, holders),
        }
        if include_events:
            report["events"] = [serialize_event(event) for event in events]
        return report


def serialize_event(event: LedgerEvent) -> dict[str, Any]:
    """Serialize a LedgerEvent to a plain dict."""
    return {
        "event_id": event.event_id,
        "kind": event.kind.value,
        "data": event.data,
        "created_at": event.created_at.isoformat(),
    }


def _build_summary(events: list[LedgerEvent], holders: dict[str, int]) -> dict[str, Any]:
    """Count events by kind and holders."""
    counts: dict[str, int] = {}
    for event in events:
        counts[event.kind.value] = counts.get(event.kind.value, 0) + 1
    return {
        "holder_count": len(holders),
        "event_count": len(events),
        "events_by_kind": counts,
    }


def _json_serializer(obj: Any) -> Any:
    """Custom JSON serializer for non-standard types."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")
