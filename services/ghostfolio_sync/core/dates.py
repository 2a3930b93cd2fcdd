"""Date and currency-string normalisation shared by the sync components.

Broker exports and justETF use ``DD.MM.YYYY`` strings, justETF's API uses
``YYYY-MM-DD`` and Ghostfolio speaks ISO-8601 timestamps. Calendar dates are
always interpreted at midnight UTC.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone

from .errors import ScrapeError

DOTTED_DATE_PATTERN = r"^(?:\d{2}\.){2}\d{4}$"
_DOTTED_RE = re.compile(DOTTED_DATE_PATTERN)
EMPTY_CELL = "-"


def parse_dotted_date(raw: str) -> date:
    """Parse a ``DD.MM.YYYY`` string."""

    value = raw.strip()
    if not _DOTTED_RE.match(value):
        raise ScrapeError(f"Date {raw!r} must be in format DD.MM.YYYY")
    day, month, year = (int(part) for part in value.split("."))
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise ScrapeError(f"Date {raw!r} is not a valid calendar date") from exc


def date_to_dotted(value: date) -> str:
    return value.strftime("%d.%m.%Y")


def date_to_iso(value: date) -> str:
    """Return the midnight-UTC ISO timestamp Ghostfolio stores for ``value``."""

    return f"{value.isoformat()}T00:00:00.000Z"


def dotted_to_iso(raw: str) -> str:
    return date_to_iso(parse_dotted_date(raw))


def dash_to_dotted(raw: str) -> str:
    """Convert ``YYYY-MM-DD`` to ``DD.MM.YYYY``."""

    try:
        parsed = datetime.strptime(raw.strip(), "%Y-%m-%d").date()
    except ValueError as exc:
        raise ScrapeError(f"Date {raw!r} must be in format YYYY-MM-DD") from exc
    return date_to_dotted(parsed)


def iso_to_date(raw: str | datetime | date) -> date:
    """Return the UTC calendar date of an ISO timestamp or plain date."""

    if isinstance(raw, datetime):
        moment = raw
    elif isinstance(raw, date):
        return raw
    else:
        text = raw.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ScrapeError(f"Date {raw!r} is not an ISO-8601 value") from exc
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.date()


def epoch_ms_to_date(value: int | float) -> date:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).date()


def date_to_epoch_ms(value: date | datetime) -> int:
    if isinstance(value, datetime):
        moment = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    else:
        moment = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)


def split_amount(raw: str | None) -> tuple[float, str | None]:
    """Split a signed fee cell such as ``-12.34 EUR`` into ``(12.34, "EUR")``.

    ``-`` (or an empty cell) means no fee was charged.
    """

    value = (raw or "").strip()
    if not value or value == EMPTY_CELL:
        return 0.0, None
    parts = value.split()
    number = parts[0].lstrip("+-−").replace(",", ".")
    try:
        amount = float(number)
    except ValueError as exc:
        raise ScrapeError(f"Unable to parse amount from {raw!r}") from exc
    currency = parts[1].upper() if len(parts) > 1 else None
    return amount, currency


def currency_of(raw: str | None) -> str | None:
    """Return the currency token of a fee cell, or ``None`` when it has none."""

    return split_amount(raw)[1]


__all__ = [
    "DOTTED_DATE_PATTERN",
    "EMPTY_CELL",
    "parse_dotted_date",
    "date_to_dotted",
    "date_to_iso",
    "dotted_to_iso",
    "dash_to_dotted",
    "iso_to_date",
    "epoch_ms_to_date",
    "date_to_epoch_ms",
    "split_amount",
    "currency_of",
]
