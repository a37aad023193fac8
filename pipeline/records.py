"""Win-loss record parsing and the shared first-present merge reducer."""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Iterable

logger = logging.getLogger(__name__)

_RECORD_RE = re.compile(r"(\d+)-(\d+)")

DEGENERATE_RECORD = "0-0"


def parse_record(raw: Any) -> tuple[int, int]:
    """Parse ``"11-1"`` (or ``"8-3-1"``) into ``(wins, losses)``.

    Ties are ignored. Anything without a ``W-L`` group parses as ``(0, 0)``.
    """
    if not isinstance(raw, str) or not raw:
        return 0, 0
    match = _RECORD_RE.search(raw)
    if not match:
        return 0, 0
    return int(match.group(1)), int(match.group(2))


def format_record(wins: int, losses: int) -> str:
    return f"{wins}-{losses}"


def is_meaningful_record(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != "" and value.strip() != DEGENERATE_RECORD


def first_present(
    candidates: Iterable[tuple[str, Callable[[], Any]]],
    accept: Callable[[Any], bool],
    default: Any = None,
) -> Any:
    """Return the first candidate value ``accept`` approves of.

    Candidates are ``(source_name, getter)`` pairs evaluated lazily in order.
    A getter that raises is logged and skipped; later sources still get a say.
    """
    for source, getter in candidates:
        try:
            value = getter()
        except (KeyError, TypeError, AttributeError, ValueError) as exc:
            logger.debug("Skipping %s candidate: %s", source, exc)
            continue
        if accept(value):
            return value
    return default
