# region Docstring
"""
clipcore.models.search
Domain models describing a parsed search query and its ranked results.
Contents:
- SearchFilter:
    Structured part of a query (tags, type, OCR and pinned flags). .matches(entry)
    applies the filter to one entry.
- ParsedQuery:
    The filter plus the ordered free-text terms left over after parsing.
- RankedEntry:
    One search hit: the entry, its score, the display string and the character
    offsets to emphasise within that display string.
"""
# endregion
# region Imports
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from clipcore.models.history import ClipEntry, EntryType


# endregion
# region Query Models
class SearchFilter(BaseModel):
    include_tags: set[str] = Field(default_factory=set)
    exclude_tags: set[str] = Field(default_factory=set)
    type: Optional[EntryType] = None
    has_ocr: bool = False
    pinned: Optional[bool] = None

    @property
    def is_empty(self) -> bool:
        return not (
            self.include_tags
            or self.exclude_tags
            or self.type
            or self.has_ocr
            or self.pinned is not None
        )

    def matches(self, entry: ClipEntry) -> bool:
        """True when ``entry`` satisfies every constraint of the filter."""
        if self.type is not None and entry.type != self.type:
            return False
        if self.pinned is not None and entry.pinned != self.pinned:
            return False
        if self.has_ocr and not (entry.ocr_text or "").strip():
            return False
        tags = set(entry.tags)
        if not self.include_tags.issubset(tags):
            return False
        if self.exclude_tags & tags:
            return False
        return True


class ParsedQuery(BaseModel):
    filters: SearchFilter = Field(default_factory=SearchFilter)
    terms: list[str] = Field(default_factory=list)

    @property
    def text(self) -> str:
        """Free-text terms joined by single spaces, in query order."""
        return " ".join(self.terms)


# endregion
# region Result Models
class RankedEntry(BaseModel):
    """
    A search hit.

    Attributes:
        entry (ClipEntry): The matched entry.
        score (float): Match confidence in [0, 1].
        display (str): The single-line text shown for the entry.
        highlights (tuple[int, ...]): Sorted offsets into ``display`` to emphasise.
        mode (Literal["exact", "fuzzy", "all"]): How the hit was produced.
    """

    entry: ClipEntry
    score: float
    display: str
    highlights: tuple[int, ...] = ()
    mode: Literal["exact", "fuzzy", "all"] = "all"

    model_config = ConfigDict(frozen=True)

    def highlight_ranges(self) -> list[tuple[int, int]]:
        """Merge highlight offsets into inclusive (start, end) runs."""
        ranges: list[tuple[int, int]] = []
        for offset in self.highlights:
            if ranges and offset == ranges[-1][1] + 1:
                ranges[-1] = (ranges[-1][0], offset)
            else:
                ranges.append((offset, offset))
        return ranges


# endregion

__all__ = ["ParsedQuery", "RankedEntry", "SearchFilter"]
