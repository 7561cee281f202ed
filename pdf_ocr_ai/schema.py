"""Pydantic models for extracted page content and response payloads."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from .utils import InvalidPageRangeError

# PDF affine transform [a, b, c, d, e, f]; (e, f) is the translation.
Transform = tuple[float, float, float, float, float, float]
ZERO_TRANSFORM: Transform = (0.0, 0.0, 0.0, 0.0, 0.0, 0.0)


class ContentKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"


class ContentItem(BaseModel):
    """One unit of page content (a text run or an image region).

    ``anchor`` is only used for ordering. For image items ``text`` holds
    whatever OCR recognized inside the image and may be empty.
    """

    model_config = ConfigDict(frozen=True)

    kind: ContentKind
    text: str = ""
    anchor: Transform = ZERO_TRANSFORM
    description: str | None = None
    usage: int | None = Field(default=None, ge=0)

    @property
    def x(self) -> float:
        return self.anchor[4]

    @property
    def y(self) -> float:
        return self.anchor[5]


class Page(BaseModel):
    """Reading-order content of one page."""

    model_config = ConfigDict(frozen=True)

    page_number: int = Field(ge=1)
    contents: List[ContentItem] = Field(default_factory=list)


class ExtractionResult(BaseModel):
    """Request-level result of the content-item path."""

    pages: List[Page] = Field(default_factory=list)
    transcript: str = ""
    total_usage: int = 0


class OcrResult(BaseModel):
    """Transcript of an OCR re-pass plus the path of the OCR-enhanced PDF."""

    transcript: str
    output_path: str


@dataclass(frozen=True)
class RasterImage:
    """Decoded bitmap with interleaved R, G, B, A bytes."""

    width: int
    height: int
    data: bytes

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Invalid raster size {self.width}x{self.height}")
        expected = self.width * self.height * 4
        if len(self.data) != expected:
            raise ValueError(
                f"Raster buffer has {len(self.data)} bytes, expected {expected}"
            )


@dataclass(frozen=True)
class PageRange:
    """Inclusive 1-based page range.

    Construction validates ``1 <= start <= end`` on the requested values;
    :meth:`pages` optionally bounds ``end`` to the document's page count.
    """

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 1 or self.start > self.end:
            raise InvalidPageRangeError("Page range is invalid")

    def pages(self, total_pages: int | None = None) -> range:
        end = self.end if total_pages is None else min(self.end, total_pages)
        return range(self.start, end + 1)

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


# ---------------------------------------------------------------------------
# HTTP payloads
# ---------------------------------------------------------------------------
class FileInfo(BaseModel):
    originalName: str
    filePath: str
    ocrFilePath: str | None = None


class ProcessResponse(BaseModel):
    """Successful response for both the enrichment and the plain OCR path."""

    status: str = "success"
    msg: str = "File uploaded and processed successfully"
    file: FileInfo
    contents: str
    totalTokenUsage: int | None = None


class ErrorResponse(BaseModel):
    status: str = "error"
    msg: str
