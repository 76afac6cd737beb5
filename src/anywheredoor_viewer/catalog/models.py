"""Records returned by the AnyWhereDoor catalogue API."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


@dataclass(slots=True)
class Uploader:
    id: str
    username: str
    display_name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Uploader":
        return cls(
            id=str(data["id"]),
            username=str(data.get("username", "")),
            display_name=data.get("display_name"),
        )

    @property
    def label(self) -> str:
        return self.display_name or self.username


@dataclass(slots=True)
class Category:
    id: str
    name: str
    slug: str
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Category":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            slug=str(data.get("slug", "")),
            description=data.get("description"),
        )


@dataclass(slots=True)
class Video:
    """A 360 video listed in the catalogue."""

    id: str
    title: str
    video_url: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    duration: Optional[float] = None  # seconds
    location_name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    country: Optional[str] = None
    city: Optional[str] = None
    view_count: int = 0
    like_count: int = 0
    upload_date: Optional[str] = None
    uploader: Optional[Uploader] = None
    category: Optional[Category] = None
    tags: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Video":
        uploader = data.get("uploader")
        category = data.get("category")
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            video_url=str(data.get("video_url", "")),
            description=data.get("description"),
            thumbnail_url=data.get("thumbnail_url"),
            duration=_optional_float(data.get("duration")),
            location_name=data.get("location_name"),
            latitude=_optional_float(data.get("latitude")),
            longitude=_optional_float(data.get("longitude")),
            country=data.get("country"),
            city=data.get("city"),
            view_count=int(data.get("view_count") or 0),
            like_count=int(data.get("like_count") or 0),
            upload_date=data.get("upload_date"),
            uploader=Uploader.from_dict(uploader) if uploader else None,
            category=Category.from_dict(category) if category else None,
            tags=[str(tag) for tag in (data.get("tags") or [])],
        )

    @property
    def place(self) -> str:
        """Human readable location, most specific first."""
        parts = [self.location_name, self.city, self.country]
        return ", ".join(part for part in parts if part)


@dataclass(slots=True)
class VideoPage:
    """One page of results.

    The server reports ``total`` as the number of rows in this page, not the
    size of the whole result set, so a full page is the only hint that
    another one may follow.
    """

    videos: list[Video]
    page: int
    limit: int
    total: int

    @property
    def has_next(self) -> bool:
        return self.limit > 0 and len(self.videos) >= self.limit

    @property
    def has_previous(self) -> bool:
        return self.page > 1


@dataclass(slots=True)
class LocalVideo:
    filename: str
    url: str
    size: int
    created: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LocalVideo":
        return cls(
            filename=str(data["filename"]),
            url=str(data["url"]),
            size=int(data.get("size") or 0),
            created=str(data.get("created", "")),
        )
