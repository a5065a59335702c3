# region Docstring
"""
clipcore.search.matching
Scoring and ranking of history entries against free-text search terms.
Overview:
- Every entry is matched through its *search text*: the raw text of a text entry,
    or for an image the recognised OCR text, falling back to a synthesized
    "Image WxH app title" description.
- Two modes are supported:
    - exact: every lowercased term must be a literal substring of the search text,
        source title and source app combined. All hits score the same and keep
        the incoming (store) order.
    - fuzzy: each term is scored by a TermScorer strategy. A hit needs every term
        to reach the threshold on its own; the hit's score is the mean of the
        per-term scores. Hits are ordered by score, then pinned, then newest.
- Highlight offsets are computed against the displayed single-line form of the
    search text, never against the raw stored value.
Contents:
- TermScorer protocol with two strategies:
    - SpanDensityScorer: literal-match bonus for early, long matches; otherwise an
        in-order subsequence scored by span density, start offset and gaps.
    - SequenceRatioScorer: difflib partial ratio of the term against the best
        aligned window of the haystack.
- search(): pure function combining the query parser, filters and matching.
- SearchEngine: search() bound to SearchSettings.
"""
# endregion
# region Imports
from difflib import SequenceMatcher
from typing import Iterable, Optional, Protocol, Union

from clipcore import constants
from clipcore.config import SearchSettings, clamp_threshold
from clipcore.models.history import ClipEntry
from clipcore.models.search import ParsedQuery, RankedEntry
from clipcore.search.query_parser import parse_query
from clipcore.utils import one_line


# endregion
# region Text Helpers
def fold(text: str) -> str:
    """Lowercase ``text`` one character at a time so offsets stay aligned."""
    return "".join(ch.lower()[:1] for ch in text)


def search_text(entry: ClipEntry) -> str:
    """The text an entry is matched against."""
    if entry.type == "text":
        return entry.text or ""
    if (entry.ocr_text or "").strip():
        return entry.ocr_text
    parts = ["Image"]
    if entry.dimensions:
        parts.append(entry.dimensions)
    if entry.source:
        parts.extend(p for p in (entry.source.app, entry.source.title) if p)
    return " ".join(parts)


def display_text(entry: ClipEntry) -> str:
    """The single-line form shown for an entry; highlight offsets index into it."""
    return one_line(search_text(entry))


def subsequence_positions(term: str, haystack: str) -> Optional[list[int]]:
    """
    Greedy left-to-right positions of each character of ``term`` in ``haystack``.

    Returns None when some character cannot be placed in order.
    """
    positions = []
    cursor = 0
    for ch in term:
        index = haystack.find(ch, cursor)
        if index < 0:
            return None
        positions.append(index)
        cursor = index + 1
    return positions


def highlight_offsets(terms: Iterable[str], display: str) -> tuple[int, ...]:
    """
    Offsets in ``display`` to emphasise for ``terms``.

    A term contributes its first literal occurrence, or failing that its
    in-order subsequence positions. Terms that do not occur contribute nothing.
    """
    folded = fold(display)
    offsets: set[int] = set()
    for term in terms:
        needle = fold(term)
        if not needle:
            continue
        start = folded.find(needle)
        if start >= 0:
            offsets.update(range(start, start + len(needle)))
            continue
        positions = subsequence_positions(needle, folded)
        if positions:
            offsets.update(positions)
    return tuple(sorted(offsets))


# endregion
# region Scorers
class TermScorer(Protocol):
    name: str

    def score(self, term: str, haystack: str) -> float: ...


class SpanDensityScorer:
    """
    Literal matches score 0.65..1.0, rewarding an early start and a term that is
    long relative to 12 characters. Otherwise the term must appear as an in-order
    subsequence; the score combines match density over the covered span, how early
    the span starts and how few gaps it contains. Missing characters score 0.
    """

    name = "span"

    def score(self, term: str, haystack: str) -> float:
        needle = fold(term)
        hay = fold(haystack)
        if not needle or not hay:
            return 0.0
        length = len(hay)

        start = hay.find(needle)
        if start >= 0:
            return min(
                1.0,
                constants.LITERAL_BASE
                + constants.LITERAL_START_WEIGHT * (1 - start / length)
                + constants.LITERAL_LENGTH_WEIGHT
                * min(1.0, len(needle) / constants.LITERAL_LENGTH_NORM),
            )

        positions = subsequence_positions(needle, hay)
        if positions is None:
            return 0.0
        first, last = positions[0], positions[-1]
        span = last - first + 1
        density = len(needle) / span
        start_bonus = 1 - first / length
        gap_penalty = (span - len(needle)) / span
        raw = (
            constants.SUBSEQ_DENSITY_WEIGHT * density
            + constants.SUBSEQ_START_WEIGHT * start_bonus
            + constants.SUBSEQ_GAP_WEIGHT * (1 - gap_penalty)
        )
        return max(0.0, min(1.0, raw))


class SequenceRatioScorer:
    """
    difflib partial ratio: the best SequenceMatcher ratio between the term and a
    term-sized window of the haystack anchored on each matching block.
    """

    name = "ratio"

    def score(self, term: str, haystack: str) -> float:
        needle = fold(term)
        hay = fold(haystack)
        if not needle or not hay:
            return 0.0
        if needle in hay:
            return 1.0
        if len(hay) <= len(needle):
            return SequenceMatcher(None, needle, hay, autojunk=False).ratio()

        best = 0.0
        matcher = SequenceMatcher(None, needle, hay, autojunk=False)
        for block in matcher.get_matching_blocks():
            if block.size == 0:
                continue
            start = max(0, block.b - block.a)
            window = hay[start : start + len(needle)]
            ratio = SequenceMatcher(None, needle, window, autojunk=False).ratio()
            best = max(best, ratio)
        return best


def make_scorer(name: str) -> TermScorer:
    """Build the scorer registered under ``name`` ('span' or 'ratio')."""
    if name == "ratio":
        return SequenceRatioScorer()
    if name == "span":
        return SpanDensityScorer()
    raise ValueError(f"Unknown scorer: {name!r}")


# endregion
# region Matching
def _exact(entries: list[ClipEntry], terms: list[str]) -> list[RankedEntry]:
    needles = [fold(term) for term in terms]
    hits = []
    for entry in entries:
        source = entry.source
        haystack = fold(
            " ".join(
                [
                    search_text(entry),
                    (source.title or "") if source else "",
                    (source.app or "") if source else "",
                ]
            )
        )
        if all(needle in haystack for needle in needles):
            display = display_text(entry)
            hits.append(
                RankedEntry(
                    entry=entry,
                    score=constants.EXACT_MATCH_SCORE,
                    display=display,
                    highlights=highlight_offsets(terms, display),
                    mode="exact",
                )
            )
    return hits


def _fuzzy(
    entries: list[ClipEntry], terms: list[str], threshold: float, scorer: TermScorer
) -> list[RankedEntry]:
    hits = []
    for entry in entries:
        haystack = search_text(entry)
        scores = []
        for term in terms:
            value = scorer.score(term, haystack)
            if value <= 0 or value < threshold:
                break
            scores.append(value)
        else:
            display = display_text(entry)
            hits.append(
                RankedEntry(
                    entry=entry,
                    score=sum(scores) / len(scores),
                    display=display,
                    highlights=highlight_offsets(terms, display),
                    mode="fuzzy",
                )
            )
    hits.sort(
        key=lambda hit: (
            -hit.score,
            not hit.entry.pinned,
            -hit.entry.ts.timestamp(),
        )
    )
    return hits


def search(
    entries: Iterable[ClipEntry],
    query: Union[str, ParsedQuery, None],
    mode: str = "fuzzy",
    threshold: float = constants.DEFAULT_FUZZY_THRESHOLD,
    scorer: Optional[TermScorer] = None,
) -> list[RankedEntry]:
    """
    Filter and rank ``entries`` for ``query``.

    Arguments:
        entries (Iterable[ClipEntry]): Candidates, normally the store's ordered list.
        query (str | ParsedQuery | None): The raw search string or an already parsed query.
        mode (str): "exact" or "fuzzy"; anything else is treated as "fuzzy".
        threshold (float): Minimum per-term fuzzy score, clamped to [0.1, 0.9].
        scorer (Optional[TermScorer]): Fuzzy strategy. DEFAULT: SpanDensityScorer

    Returns:
        list[RankedEntry]: Hits in display order. Without free-text terms every
        entry passing the filters is returned in input order with score 1.0.
    """
    parsed = query if isinstance(query, ParsedQuery) else parse_query(query)
    candidates = [entry for entry in entries if parsed.filters.matches(entry)]

    if not parsed.terms:
        return [
            RankedEntry(entry=entry, score=1.0, display=display_text(entry))
            for entry in candidates
        ]
    if mode == "exact":
        return _exact(candidates, parsed.terms)
    return _fuzzy(
        candidates,
        parsed.terms,
        clamp_threshold(threshold),
        scorer or SpanDensityScorer(),
    )


class SearchEngine:
    """
    search() bound to a SearchSettings instance.

    The scorer strategy is chosen once, at construction.
    """

    def __init__(
        self,
        settings: Optional[SearchSettings] = None,
        scorer: Optional[TermScorer] = None,
    ) -> None:
        self.settings = settings or SearchSettings()
        self.scorer = scorer or make_scorer(self.settings.scorer)

    def search(
        self,
        entries: Iterable[ClipEntry],
        query: Optional[str],
        mode: Optional[str] = None,
        threshold: Optional[float] = None,
    ) -> list[RankedEntry]:
        """Run search() with the configured mode and threshold unless overridden."""
        return search(
            entries,
            query,
            mode=mode or self.settings.mode,
            threshold=self.settings.fuzzy_threshold if threshold is None else threshold,
            scorer=self.scorer,
        )


# endregion

__all__ = [
    "SearchEngine",
    "SequenceRatioScorer",
    "SpanDensityScorer",
    "TermScorer",
    "display_text",
    "fold",
    "highlight_offsets",
    "make_scorer",
    "search",
    "search_text",
    "subsequence_positions",
]
