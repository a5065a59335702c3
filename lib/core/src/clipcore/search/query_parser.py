# region Docstring
"""
clipcore.search.query_parser
Turns a raw search string into a SearchFilter plus free-text terms.
Recognised tokens (prefix is case-insensitive, values are lowercased):
    tag:<name>       entry must carry <name>
    -tag:<name>      entry must not carry <name>
    type:image       only image entries (type:text for text entries)
    has:ocr          only entries with recognised text
    pinned:yes       only pinned entries (pinned:no for unpinned)

Anything else, including malformed filter tokens, is kept verbatim as a
free-text term. Parsing never fails.
"""
# endregion
# region Imports
from typing import Callable, Optional

from clipcore.models.search import ParsedQuery, SearchFilter


# endregion
# region Token Handlers
def _tag(value: str, query: SearchFilter) -> bool:
    if not value:
        return False
    query.include_tags.add(value)
    return True


def _not_tag(value: str, query: SearchFilter) -> bool:
    if not value:
        return False
    query.exclude_tags.add(value)
    return True


def _type(value: str, query: SearchFilter) -> bool:
    if value not in ("image", "text"):
        return False
    query.type = value
    return True


def _has(value: str, query: SearchFilter) -> bool:
    if value != "ocr":
        return False
    query.has_ocr = True
    return True


def _pinned(value: str, query: SearchFilter) -> bool:
    if value not in ("yes", "no"):
        return False
    query.pinned = value == "yes"
    return True


_HANDLERS: dict[str, Callable[[str, SearchFilter], bool]] = {
    "tag": _tag,
    "-tag": _not_tag,
    "type": _type,
    "has": _has,
    "pinned": _pinned,
}


# endregion
# region Parser
def _split_token(token: str) -> Optional[tuple[str, str]]:
    if ":" not in token:
        return None
    key, _, value = token.partition(":")
    return key.lower(), value.strip().lower()


def parse_query(raw: Optional[str]) -> ParsedQuery:
    """
    Parse ``raw`` into filters and free-text terms.

    Arguments:
        raw (Optional[str]): The search string as typed.

    Returns:
        ParsedQuery: Structured filter and the remaining terms in order.

    Example:
        >>> q = parse_query("tag:Work -tag:old type:image invoice 2024")
        >>> sorted(q.filters.include_tags), q.filters.type, q.terms
        (['work'], 'image', ['invoice', '2024'])
    """
    filters = SearchFilter()
    terms: list[str] = []
    for token in (raw or "").split():
        parts = _split_token(token)
        handler = _HANDLERS.get(parts[0]) if parts else None
        if handler is not None and handler(parts[1], filters):
            continue
        terms.append(token)
    return ParsedQuery(filters=filters, terms=terms)


# endregion
__all__ = ["parse_query"]
