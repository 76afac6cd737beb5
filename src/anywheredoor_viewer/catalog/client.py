"""Read-only client for the AnyWhereDoor REST API."""
from __future__ import annotations

from typing import Any, Optional
from urllib.parse import urljoin

import requests
from loguru import logger

from ..config import DEFAULT_API_URL
from .models import Category, LocalVideo, Video, VideoPage


class CatalogError(RuntimeError):
    """Raised when the catalogue cannot be reached or answers with an error."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class CatalogClient:
    """Fetch videos and categories; no writes, no retries."""

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def list_videos(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> VideoPage:
        params: dict[str, str] = {}
        if page:
            params["page"] = str(page)
        if limit:
            params["limit"] = str(limit)
        if category:
            params["category"] = category
        if search:
            params["search"] = search
        payload = self._get("/api/videos", params)
        videos = [Video.from_dict(item) for item in payload.get("videos", [])]
        return VideoPage(
            videos=videos,
            page=int(payload.get("page") or page or 1),
            limit=int(payload.get("limit") or limit or len(videos) or 1),
            total=int(payload.get("total") or len(videos)),
        )

    def get_video(self, video_id: str) -> Video:
        if not video_id:
            raise ValueError("Video id is required")
        payload = self._get(f"/api/videos/{video_id}")
        if "video" not in payload:
            raise CatalogError(f"Video {video_id} missing from response")
        return Video.from_dict(payload["video"])

    def featured_videos(self) -> list[Video]:
        payload = self._get("/api/videos/featured")
        return [Video.from_dict(item) for item in payload.get("videos", [])]

    def categories(self) -> list[Category]:
        payload = self._get("/api/categories")
        return [Category.from_dict(item) for item in payload.get("categories", [])]

    def local_videos(self) -> list[LocalVideo]:
        payload = self._get("/api/local-videos")
        return [LocalVideo.from_dict(item) for item in payload.get("videos", [])]

    def resolve_media_url(self, video_url: str) -> str:
        """Make server-relative media paths (``/uploads/..``) absolute."""
        if not video_url:
            raise ValueError("Video URL is empty")
        if "://" in video_url:
            return video_url
        return urljoin(self.base_url + "/", video_url.lstrip("/"))

    # ------------------------------------------------------------------
    def _get(self, endpoint: str, params: Optional[dict[str, str]] = None) -> dict[str, Any]:
        url = f"{self.base_url}{endpoint}"
        logger.debug("GET {} params={}", url, params or {})
        try:
            response = self._session.get(
                url,
                params=params or None,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise CatalogError(f"Request to {url} failed: {exc}") from exc
        if not response.ok:
            raise CatalogError(f"HTTP error {response.status_code} from {url}", status=response.status_code)
        try:
            payload = response.json()
        except ValueError as exc:
            raise CatalogError(f"Invalid JSON from {url}") from exc
        if not isinstance(payload, dict):
            raise CatalogError(f"Unexpected payload from {url}")
        return payload
