import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from gallery.schemas import ClearCacheResponse, ErrorResponse

logger = logging.getLogger("gallery.errors")


class GalleryError(Exception):
    """Base class for gallery service failures."""


class UpstreamError(GalleryError):
    """Media host unreachable or returned a bad response."""


class CacheUnavailable(GalleryError):
    """The cache store is not connected."""


def error_response(message: str, http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
    body = ErrorResponse(error=message)
    return JSONResponse(status_code=http_status, content=body.model_dump())


async def _upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    logger.error("upstream failure on %s: %s", request.url.path, exc)
    return error_response(str(exc))


async def _cache_unavailable_handler(request: Request, exc: CacheUnavailable) -> JSONResponse:
    body = ClearCacheResponse(success=False, message=str(exc) or "Cache not connected")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump())


async def _redis_error_handler(request: Request, exc: RedisError) -> JSONResponse:
    logger.error("cache failure on %s: %s", request.url.path, exc)
    return error_response(str(exc))


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled failure on %s", request.url.path, exc_info=exc)
    return error_response(str(exc) or exc.__class__.__name__)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(UpstreamError, _upstream_error_handler)
    app.add_exception_handler(CacheUnavailable, _cache_unavailable_handler)
    app.add_exception_handler(RedisError, _redis_error_handler)
    # anything else still gets the {success: false, error} envelope
    app.add_exception_handler(Exception, _unhandled_error_handler)
