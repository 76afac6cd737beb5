"""Client and records for the AnyWhereDoor video catalogue."""

from .client import CatalogClient, CatalogError
from .models import Category, LocalVideo, Uploader, Video, VideoPage

__all__ = [
    "CatalogClient",
    "CatalogError",
    "Category",
    "LocalVideo",
    "Uploader",
    "Video",
    "VideoPage",
]
