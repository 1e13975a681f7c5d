# gallery/routers/images.py

from fastapi import APIRouter, Depends, Request, Response

from gallery.cache import CACHE_TTL_SEC, IMAGES_CACHE_KEY, CacheHandle, Fetcher, clear, get_or_fetch
from gallery.schemas import ClearCacheResponse, ErrorResponse, ImagesResponse

router = APIRouter(tags=["images"])


def get_cache(request: Request) -> CacheHandle:
    return request.app.state.cache


def get_fetcher(request: Request) -> Fetcher:
    return request.app.state.fetcher


@router.get(
    "/images",
    response_model=ImagesResponse,
    responses={500: {"model": ErrorResponse}},
)
async def images(
    response: Response,
    cache: CacheHandle = Depends(get_cache),
    fetcher: Fetcher = Depends(get_fetcher),
):
    """Return the gallery, from cache when fresh."""
    snapshot, cached = await get_or_fetch(cache, IMAGES_CACHE_KEY, CACHE_TTL_SEC, fetcher)
    response.headers["X-Gallery-Cache"] = "HIT" if cached else "MISS"
    return ImagesResponse(cached=cached, data=list(snapshot.images))


@router.post(
    "/clear-cache",
    response_model=ClearCacheResponse,
    responses={400: {"model": ClearCacheResponse}, 500: {"model": ErrorResponse}},
)
async def clear_cache(cache: CacheHandle = Depends(get_cache)):
    await clear(cache, IMAGES_CACHE_KEY)
    return ClearCacheResponse(success=True, message="Cache cleared")
