# region Imports

from typing import Any, Iterable, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from clipcore.models.history import ClipEntry

# endregion
# region Pydantic Models


class ClipboardRead(BaseModel):
    """
    Outcome of one clipboard read.
    Attributes:
        ok (bool): False when the backend raised.
        image (Optional[Any]): PIL image found on the clipboard, if any.
        text (Optional[str]): Text found on the clipboard, if any.
        error (Optional[str]): Description of the failure when ok is False.
    """

    ok: bool = Field(True, description="False when the backend raised")
    image: Optional[Any] = Field(None, description="PIL image read from the clipboard")
    text: Optional[str] = Field(None, description="Text read from the clipboard")
    error: Optional[str] = Field(None, description="Failure description")

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @classmethod
    def failed(cls, error: BaseException) -> "ClipboardRead":
        return cls(ok=False, error=f"{type(error).__name__}: {error}")


class CaptureOutcome(BaseModel):
    """
    Result of a single capture poller tick.
    Attributes:
        status (str): 'inserted', 'duplicate', 'empty' or 'failed'.
        kind (Optional[str]): 'text' or 'image' when content was seen.
        entry_id (Optional[int]): Id of the inserted entry.
        message (Optional[str]): Extra detail (the error for failed ticks).
    """

    status: Literal["inserted", "duplicate", "empty", "failed"]
    kind: Optional[Literal["text", "image"]] = None
    entry_id: Optional[int] = None
    message: Optional[str] = None


class OcrResult(BaseModel):
    """
    Result of recognising one image entry.
    Attributes:
        entry_id (int): The image entry the job was scheduled for.
        success (bool): Whether text was recognised and handed to the store.
        text (Optional[str]): Recognised text.
        message (str): Human-readable outcome.
    """

    entry_id: int
    success: bool
    text: Optional[str] = None
    message: str = ""



class HistoryChange(BaseModel):
    """
    Rows written by one history transaction.
    Attributes:
        entries (list[ClipEntry]): The whole history after the change, in store order.
        upserted (list[ClipEntry]): Entries that were added or modified.
        removed (list[ClipEntry]): Entries that were deleted.
    """

    entries: list[ClipEntry] = Field(default_factory=list)
    upserted: list[ClipEntry] = Field(default_factory=list)
    removed: list[ClipEntry] = Field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.upserted or self.removed)

    @classmethod
    def between(cls, before: Iterable[ClipEntry], after: Iterable[ClipEntry]) -> "HistoryChange":
        """Row-level difference from ``before`` to ``after``."""
        previous = {entry.id: entry for entry in before}
        after = list(after)
        kept = {entry.id for entry in after}
        return cls(
            entries=after,
            upserted=[e for e in after if previous.get(e.id) != e],
            removed=[e for e in previous.values() if e.id not in kept],
        )


# endregion

__all__ = ["CaptureOutcome", "ClipboardRead", "HistoryChange", "OcrResult"]
