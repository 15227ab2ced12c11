"""Common utilities for lingorag.

Text handling contract
----------------------
* Content, prompts and queries have BOM markers stripped before they are sent
  to the backend, so stored documents and search queries never carry
  spurious characters.
* Timestamps from the backend arrive either as ISO-8601 strings or as epoch
  milliseconds and are normalized to timezone-aware UTC datetimes.
"""

import hashlib
import json
import unicodedata
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any


def clean_text(text: str, *, normalize: bool = True) -> str:
    """Remove BOM markers and optionally NFKC-normalize text.

    Args:
        text: Input text that may contain BOM or replacement characters.
        normalize: Whether to apply NFKC normalization. Enabled by default.

    Returns:
        Cleaned text.
    """
    if not text:
        return ""

    cleaned = text.replace("\ufeff", "").replace("\ufffd", "")
    if normalize:
        cleaned = unicodedata.normalize("NFKC", cleaned)
    return cleaned


def is_blank(value: str | None) -> bool:
    """Return True for None, empty or whitespace-only strings."""
    return value is None or not str(value).strip()


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def parse_timestamp(value: Any, default: datetime | None = None) -> datetime:
    """Parse a backend timestamp into an aware UTC datetime.

    Args:
        value: ISO-8601 string, epoch milliseconds, datetime, or None.
        default: Returned when the value is missing or unparseable.

    Returns:
        Parsed datetime (UTC).
    """
    fallback = default or utc_now()
    if value is None or value == "":
        return fallback
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, int | float):
        return datetime.fromtimestamp(value / 1000.0, tz=UTC)
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return fallback
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def format_timestamp(value: datetime) -> str:
    """Format a datetime as an ISO-8601 UTC string with a Z suffix."""
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


def unique_tags(tags: Iterable[str] | None) -> list[str]:
    """Drop blank and repeated tags, keeping first-seen order."""
    seen: set[str] = set()
    result: list[str] = []
    for tag in tags or []:
        tag = str(tag).strip()
        if tag and tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result


def request_fingerprint(kind: str, payload: dict[str, Any], *, fold_case: bool = True) -> str:
    """Stable fingerprint of a request, used to coalesce duplicate calls.

    String values are whitespace-collapsed, and lower-cased when
    ``fold_case`` is set, so trivially different spellings of the same
    query share one fingerprint.
    """

    def _normalize(value: Any) -> Any:
        if isinstance(value, str):
            collapsed = " ".join(value.split())
            return collapsed.lower() if fold_case else collapsed
        if isinstance(value, dict):
            return {k: _normalize(v) for k, v in value.items() if v is not None}
        if isinstance(value, list | tuple):
            return [_normalize(v) for v in value]
        return value

    encoded = json.dumps(_normalize(payload), sort_keys=True, ensure_ascii=False)
    return f"{kind}:{hashlib.sha256(encoded.encode('utf-8')).hexdigest()}"
