# region Docstring
"""
clipcore.models.history.clip_entry
Persistence and domain models for clipboard history entries.
Overview:
- Provides a SQLAlchemy entity to persist clipboard history entries (text and image)
    with their source window, tags, pin flag and capture timestamp.
- Provides Pydantic models mirroring the persisted entity for safe I/O, validation,
    and serialization, plus the patch model used for shallow-merge updates.
Contents:
- SQLAlchemy entities:
    - ClipEntryEntity:
        Stores one history entry. Image entries carry the backing file path, a
        base64 preview, pixel dimensions and optional OCR text. Converts to a
        ClipEntry via the .model property.
- Pydantic models:
    - WindowSource:
        The foreground application {app, title} recorded at capture time.
    - ClipEntry:
        A single clipboard history entry. Normalises tags (lowercase, unique, sorted),
        forces timezone-aware timestamps and checks that each entry type carries its
        payload. Converts to the durable JSON record with camelCase keys
        (to_record/from_record) and to the SQLAlchemy entity (.entity).
    - EntryPatch:
        The set of fields an update may change. Only explicitly supplied fields are
        merged.
Design notes:
- Ids are assigned by the capture side (time-derived, monotonic), never by the database.
- Unknown fields in stored records are ignored so newer writers never break older readers.
- Ordering and eviction are owned by the history store, not by these models.
"""
# endregion
# region Imports
import json
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from sqlalchemy import JSON, BigInteger, Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from clipcore.database import Base

EntryType = Literal["text", "image"]


# endregion
# region SQLAlchemy Model
class ClipEntryEntity(Base):
    """
    Model representing clipboard history entries.
    Attributes:
        id (int): Primary key, assigned at capture time.
        type (str): Entry type ("text" or "image").
        text (Optional[str]): Text payload.
        file_path (Optional[str]): Backing file of an image entry.
        thumbnail (Optional[str]): Data URI preview of an image entry.
        width (Optional[int]): Image width in pixels.
        height (Optional[int]): Image height in pixels.
        ocr_text (Optional[str]): Text recognised in an image entry.
        source (Optional[dict]): Foreground window {app, title} at capture time.
        tags (list[str]): Lowercased tags.
        pinned (bool): Whether the entry is pinned.
        ts (datetime): Capture timestamp.
    """

    __tablename__ = "clip_entries"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    type: Mapped[str] = mapped_column(String(10), nullable=False, default="text")
    text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    file_path: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    thumbnail: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    width: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    height: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    ocr_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    source: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    tags: Mapped[list[str]] = mapped_column(JSON, default=list)
    pinned: Mapped[bool] = mapped_column(Boolean, default=False)
    ts: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<ClipEntry(id={self.id}, type='{self.type}', ts={self.ts})>"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ClipEntryEntity):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def model(self) -> "ClipEntry":
        return ClipEntry(
            id=self.id,
            type=self.type,
            text=self.text,
            file_path=self.file_path,
            thumbnail=self.thumbnail,
            width=self.width,
            height=self.height,
            ocr_text=self.ocr_text,
            source=self.source,
            tags=self.tags or [],
            pinned=bool(self.pinned),
            ts=self.ts,
        )


# endregion
# region Pydantic Models
class WindowSource(BaseModel):
    """Foreground application at capture time."""

    app: Optional[str] = Field(None, description="Application (process) name")
    title: Optional[str] = Field(None, description="Window title")

    model_config = ConfigDict(extra="ignore", frozen=True)

    @property
    def label(self) -> str:
        """'app - title' with missing parts left out."""
        return " - ".join(part for part in (self.app, self.title) if part)


class ClipEntry(BaseModel):
    id: int = Field(..., description="Unique, time-derived id of the entry")
    type: EntryType = Field("text", description="The type of content (text or image)")
    text: Optional[str] = Field(None, description="Text payload of a text entry")
    file_path: Optional[str] = Field(
        None, alias="filePath", description="Backing file of an image entry"
    )
    thumbnail: Optional[str] = Field(
        None, description="Data URI preview of an image entry"
    )
    width: Optional[int] = Field(None, description="Image width in pixels")
    height: Optional[int] = Field(None, description="Image height in pixels")
    ocr_text: Optional[str] = Field(
        None, alias="ocrText", description="Text recognised in an image entry"
    )
    source: Optional[WindowSource] = Field(
        None, description="Foreground window at capture time"
    )
    tags: list[str] = Field(default_factory=list, description="Lowercased tags")
    pinned: bool = Field(False, description="Whether the entry is pinned")
    ts: datetime = Field(..., description="Capture timestamp")

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "id": 1717171717171,
                    "type": "text",
                    "text": "Sample clipboard text",
                    "source": {"app": "Code", "title": "main.py - clipdeck"},
                    "tags": ["work"],
                    "pinned": False,
                    "ts": "2024-05-31T16:08:37.171000+00:00",
                },
                {
                    "id": 1717171717999,
                    "type": "image",
                    "filePath": "/data/images/1717171717999.png",
                    "thumbnail": "data:image/png;base64,iVBORw0...",
                    "width": 1280,
                    "height": 720,
                    "ocrText": "Quarterly report",
                    "tags": [],
                    "pinned": True,
                    "ts": "2024-05-31T16:08:37.999000+00:00",
                },
            ]
        },
    )

    @field_validator("tags", mode="before")
    def normalize_tags(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            v = json.loads(v) if v.strip().startswith("[") else v.split(",")
        return sorted({str(tag).strip().lower() for tag in v if str(tag).strip()})

    @field_validator("source", mode="before")
    def parse_source(cls, v: Any) -> Any:
        if isinstance(v, str):
            return json.loads(v)
        return v

    @field_validator("ts", mode="after")
    def ensure_aware(cls, v: datetime) -> datetime:
        # SQLite drops tzinfo on the way back
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @model_validator(mode="after")
    def check_payload(self) -> "ClipEntry":
        if self.type == "text" and self.text is None:
            raise ValueError("text entries require 'text'")
        if self.type == "image" and not self.file_path:
            raise ValueError("image entries require 'file_path'")
        return self

    @property
    def is_image(self) -> bool:
        return self.type == "image"

    @property
    def dimensions(self) -> Optional[str]:
        """'WxH' for images with known size."""
        if self.width and self.height:
            return f"{self.width}×{self.height}"
        return None

    def to_record(self) -> dict[str, Any]:
        """Durable JSON form: camelCase keys, ISO timestamp, unset optionals omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "ClipEntry":
        """Build an entry from a durable record, ignoring unknown keys."""
        return cls.model_validate(record)

    @property
    def entity(self) -> ClipEntryEntity:
        return ClipEntryEntity(
            id=self.id,
            type=self.type,
            text=self.text,
            file_path=self.file_path,
            thumbnail=self.thumbnail,
            width=self.width,
            height=self.height,
            ocr_text=self.ocr_text,
            source=self.source.model_dump() if self.source else None,
            tags=list(self.tags),
            pinned=self.pinned,
            ts=self.ts,
        )


class EntryPatch(BaseModel):
    """
    Fields an update may change. Only explicitly set fields are applied, so
    ``EntryPatch(source=None)`` clears the source while ``EntryPatch()`` changes nothing.
    """

    pinned: Optional[bool] = None
    tags: Optional[list[str]] = None
    ocr_text: Optional[str] = Field(None, alias="ocrText")
    source: Optional[WindowSource] = None
    text: Optional[str] = None

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)

    def apply(self, entry: ClipEntry) -> ClipEntry:
        """Return a validated copy of ``entry`` with this patch merged in."""
        merged = {**entry.model_dump(), **self.changes()}
        return ClipEntry.model_validate(merged)


# endregion

__all__ = ["ClipEntryEntity", "ClipEntry", "EntryPatch", "EntryType", "WindowSource"]
