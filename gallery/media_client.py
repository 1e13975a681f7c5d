"""
Media host client: fetch the gallery from Cloudinary's search API.

Returns a GallerySnapshot of at most MAX_IMAGES descriptors:
  {public_id, url (400x400 fill crop), original_url, title}

Notes / Pitfalls:
- The Admin search API is rate limited per account; callers should sit behind the cache.
- Any transport error, non-2xx status or malformed payload raises UpstreamError. No retry.
"""

from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import quote

import httpx

from gallery.config import Settings
from gallery.errors import UpstreamError
from gallery.observability import UPSTREAM_FETCHES, UPSTREAM_LATENCY
from gallery.schemas import MAX_IMAGES, GallerySnapshot, ImageDescriptor
from gallery.utils import timer_s

logger = logging.getLogger("gallery.media_client")

SEARCH_EXPRESSION = "resource_type:image"
# crop=fill, 400x400, quality=auto; parameters in alphabetical order like the SDK emits them
DISPLAY_TRANSFORMATION = "c_fill,h_400,q_auto,w_400"
_VERSION_SEGMENT = re.compile(r"^v\d+/")


def delivery_url(
    delivery_base: str, cloud_name: str, public_id: str, transformation: str = DISPLAY_TRANSFORMATION
) -> str:
    """
    Build a delivery URL for an uploaded image with a named transformation.
    Foldered public ids get a "v1/" version segment, as the Cloudinary SDKs add by default.
    """
    path = quote(public_id, safe="/")
    if "/" in public_id and not _VERSION_SEGMENT.match(public_id):
        path = f"v1/{path}"
    return f"{delivery_base}/{cloud_name}/image/upload/{transformation}/{path}"


def title_from_public_id(public_id: str) -> str:
    return public_id.rsplit("/", 1)[-1]


# --------------------------------------------------------------------------------------
# Cloudinary parsing
# --------------------------------------------------------------------------------------
def normalize_search_response(
    resp: Any, *, cloud_name: str, delivery_base: str, limit: int = MAX_IMAGES
) -> GallerySnapshot:
    """
    Convert a search API response into a GallerySnapshot.
    We expect:
      resp["resources"] -> list of {public_id, secure_url, ...}
    """
    if not isinstance(resp, dict):
        raise UpstreamError("Malformed response from media host: expected an object")
    resources = resp.get("resources")
    if not isinstance(resources, list):
        raise UpstreamError("Malformed response from media host: missing resources")

    images: list[ImageDescriptor] = []
    for resource in resources[:limit]:
        if not isinstance(resource, dict):
            raise UpstreamError("Malformed response from media host: bad resource entry")
        public_id = resource.get("public_id")
        secure_url = resource.get("secure_url")
        if not (isinstance(public_id, str) and public_id) or not (
            isinstance(secure_url, str) and secure_url
        ):
            raise UpstreamError("Malformed response from media host: resource missing fields")
        images.append(
            ImageDescriptor(
                id=public_id,
                display_url=delivery_url(delivery_base, cloud_name, public_id),
                original_url=secure_url,
                title=title_from_public_id(public_id),
            )
        )

    return GallerySnapshot(images=tuple(images))


# --------------------------------------------------------------------------------------
# Public API
# --------------------------------------------------------------------------------------
class MediaClient:
    """Upstream fetcher. `transport` lets tests swap the network for httpx.MockTransport."""

    def __init__(self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self._transport = transport

    @property
    def search_url(self) -> str:
        return f"{self.settings.api_base}/{self.settings.cloud_name}/resources/search"

    async def fetch_gallery(self) -> GallerySnapshot:
        """Fetch up to MAX_IMAGES images and map them into display-ready descriptors."""
        s = self.settings
        if not s.has_credentials:
            UPSTREAM_FETCHES.labels(outcome="error").inc()
            raise UpstreamError("Media host credentials are not configured")

        body = {"expression": SEARCH_EXPRESSION, "max_results": MAX_IMAGES}
        logger.info("fetching images from media host")
        with timer_s() as elapsed:
            try:
                async with httpx.AsyncClient(
                    timeout=s.upstream_timeout_s,
                    auth=(s.api_key, s.api_secret),
                    transport=self._transport,
                ) as client:
                    r = await client.post(self.search_url, json=body)
                    r.raise_for_status()
                    payload = r.json()
                snapshot = normalize_search_response(
                    payload, cloud_name=s.cloud_name, delivery_base=s.delivery_base
                )
            except httpx.HTTPStatusError as e:
                UPSTREAM_FETCHES.labels(outcome="error").inc()
                raise UpstreamError(
                    f"Failed to fetch images from media host: HTTP {e.response.status_code}"
                ) from e
            except httpx.RequestError as e:
                UPSTREAM_FETCHES.labels(outcome="error").inc()
                raise UpstreamError(f"Failed to fetch images from media host: {e}") from e
            except ValueError as e:
                # non-JSON body
                UPSTREAM_FETCHES.labels(outcome="error").inc()
                raise UpstreamError("Malformed response from media host: invalid JSON") from e
            except UpstreamError:
                UPSTREAM_FETCHES.labels(outcome="error").inc()
                raise
            UPSTREAM_LATENCY.observe(elapsed())

        UPSTREAM_FETCHES.labels(outcome="ok").inc()
        logger.info("fetched %d images from media host", len(snapshot))
        return snapshot
