from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

MAX_IMAGES = 20


# --- Gallery data ---
class ImageDescriptor(BaseModel):
    """One display-ready image. Wire names follow the media host (public_id, url)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., alias="public_id")
    display_url: str = Field(..., alias="url")
    original_url: str
    title: str


_IMAGE_LIST = TypeAdapter(list[ImageDescriptor])


class GallerySnapshot(BaseModel):
    """
    Ordered, immutable set of at most MAX_IMAGES descriptors.
    Replaced wholesale on refresh, never mutated.
    """

    model_config = ConfigDict(frozen=True)

    images: tuple[ImageDescriptor, ...] = Field(default=(), max_length=MAX_IMAGES)

    def __len__(self) -> int:
        return len(self.images)

    def to_json(self) -> str:
        """Serialize as a JSON array of wire-named objects (the cached format)."""
        return _IMAGE_LIST.dump_json(list(self.images), by_alias=True).decode("utf-8")

    @classmethod
    def from_json(cls, raw: str | bytes) -> GallerySnapshot:
        return cls(images=tuple(_IMAGE_LIST.validate_json(raw)))


# --- Response envelopes ---
class ImagesResponse(BaseModel):
    success: Literal[True] = True
    cached: bool
    data: list[ImageDescriptor]


class ClearCacheResponse(BaseModel):
    success: bool
    message: str


class ErrorResponse(BaseModel):
    success: Literal[False] = False
    error: str


class HealthResponse(BaseModel):
    status: Literal["OK"] = "OK"
    cache: Literal["connected", "disconnected"]
    as_of: str
    service: str = "gallery-api"


class VersionResponse(BaseModel):
    service: str  # "gallery-api:0.1.0"
    service_version: str
