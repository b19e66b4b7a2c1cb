"""Shared query parameter parsing utilities."""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation


@dataclass(frozen=True)
class SearchQuery:
    """A lot search term, classified as free text or a minimum rate."""

    text: str | None = None
    min_rate: Decimal | None = None


def parse_search_query(raw: str | None) -> SearchQuery:
    """Classify a raw search string.

    A finite number (``"91.5"``, ``"100"``) becomes a lower bound on the
    acquisition rate; anything else is matched against remarks. Blank
    input yields an empty query.

    Args:
        raw: The user's search input, or None.

    Returns:
        A SearchQuery with at most one of ``text`` / ``min_rate`` set.
    """
    if raw is None:
        return SearchQuery()
    term = raw.strip()
    if not term:
        return SearchQuery()
    try:
        value = Decimal(term.replace(",", ""))
    except InvalidOperation:
        return SearchQuery(text=term)
    if not value.is_finite():
        return SearchQuery(text=term)
    return SearchQuery(min_rate=value)
