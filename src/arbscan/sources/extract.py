"""Provider payload -> market dicts: body sniffing, container strategies, filters.

Everything here is pure so providers can be reshaped without touching the
network path. Provider field names vary between API revisions, so lookups try a
few aliases before giving up.
"""

from __future__ import annotations

import json
from typing import Any, Sequence

from arbscan.models import Token

# "$" is the payload itself (bare array); anything else is a dotted key path.
DEFAULT_CONTAINERS: tuple[str, ...] = ("$", "markets", "data")

CLOSED_STATUSES = frozenset(
    {"closed", "resolved", "resolving", "settled", "cancelled", "canceled", "expired", "inactive", "paused"}
)


class ExtractionFailure(ValueError):
    """No container strategy matched the payload."""

    def __init__(self, containers: Sequence[str], payload_type: str) -> None:
        super().__init__(f"no market list found (tried {', '.join(containers)}) in {payload_type} payload")
        self.containers = tuple(containers)
        self.payload_type = payload_type


def looks_like_json(body: str) -> bool:
    """True if the trimmed body starts like a JSON object or array."""
    stripped = body.lstrip()
    return stripped.startswith("{") or stripped.startswith("[")


def decode_body(body: str) -> Any | None:
    """Parse a JSON object/array body. None for non-JSON text (e.g. 'Service Unavailable').

    A body that starts like JSON but is broken raises json.JSONDecodeError.
    """
    if not looks_like_json(body):
        return None
    return json.loads(body)


def _resolve(payload: Any, path: str) -> Any:
    if path == "$":
        return payload
    node = payload
    for part in path.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def extract_records(payload: Any, containers: Sequence[str] = DEFAULT_CONTAINERS) -> list[dict[str, Any]]:
    """Return the first list found by trying `containers` in order. Non-dict rows are dropped."""
    for path in containers:
        found = _resolve(payload, path)
        if isinstance(found, list):
            return [row for row in found if isinstance(row, dict)]
    raise ExtractionFailure(containers, type(payload).__name__)


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def status_of(raw: dict[str, Any]) -> str | None:
    status = raw.get("statusEnum") or raw.get("status")
    if status is None:
        return None
    return str(status)


def is_closed(raw: dict[str, Any]) -> bool:
    if "closed" in raw and _truthy(raw.get("closed")):
        return True
    status = status_of(raw)
    return status is not None and status.strip().lower() in CLOSED_STATUSES


def is_active(raw: dict[str, Any]) -> bool:
    """Active and not closed. A missing `active` flag counts as active."""
    if "active" in raw and not _truthy(raw.get("active")):
        return False
    return not is_closed(raw)


def first_of(raw: dict[str, Any], *keys: str) -> Any:
    for k in keys:
        v = raw.get(k)
        if v not in (None, ""):
            return v
    return None


def json_list(value: Any) -> list[Any]:
    """Lists sometimes arrive JSON-encoded as strings."""
    if isinstance(value, list):
        return value
    if isinstance(value, str) and value:
        try:
            parsed = json.loads(value)
        except (json.JSONDecodeError, TypeError):
            return []
        return parsed if isinstance(parsed, list) else []
    return []


def parse_tokens(raw: dict[str, Any]) -> list[Token]:
    """Build the ordered token list from whichever token fields the market carries."""
    tokens_raw = raw.get("tokens")
    if isinstance(tokens_raw, list) and tokens_raw:
        out = []
        for t in tokens_raw:
            if not isinstance(t, dict):
                continue
            tid = first_of(t, "token_id", "tokenId", "id")
            if tid is None:
                continue
            outcome = first_of(t, "outcome", "name", "label")
            out.append(Token(token_id=str(tid), outcome=str(outcome) if outcome is not None else None))
        return out
    token_ids = json_list(raw.get("clobTokenIds"))
    if token_ids:
        names = json_list(raw.get("outcomes"))
        while len(names) < len(token_ids):
            names.append(None)
        return [
            Token(token_id=str(tid), outcome=str(name) if name is not None else None)
            for tid, name in zip(token_ids, names)
            if tid not in (None, "")
        ]
    out = []
    for side, default_label in (("yes", "YES"), ("no", "NO")):
        tid = first_of(raw, f"{side}TokenId", f"{side}_token_id")
        if tid is not None:
            label = raw.get(f"{side}Label") or default_label
            out.append(Token(token_id=str(tid), outcome=str(label)))
    return out
