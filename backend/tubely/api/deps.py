from typing import Callable
from uuid import UUID

from fastapi import Request

from tubely.core.config import Settings
from tubely.core.errors import InvalidUploadError, UnauthenticatedError
from tubely.services.assets import AssetStore
from tubely.services.pipeline import VideoUploadPipeline
from tubely.services.videos import VideoStore

IdentityResolver = Callable[[Request], UUID]

USER_ID_HEADER = "X-User-ID"


def header_identity(request: Request) -> UUID:
    """Development-only identity: trusts the ``X-User-ID`` header."""
    raw = request.headers.get(USER_ID_HEADER)
    if not raw:
        raise UnauthenticatedError("Couldn't find caller identity")
    try:
        return UUID(raw)
    except ValueError:
        raise UnauthenticatedError(detail=f"malformed {USER_ID_HEADER} header") from None


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_caller_id(request: Request) -> UUID:
    return request.app.state.identity(request)


def get_video_store(request: Request) -> VideoStore:
    return request.app.state.video_store


def get_pipeline(request: Request) -> VideoUploadPipeline:
    return request.app.state.pipeline


def get_asset_store(request: Request) -> AssetStore:
    return request.app.state.asset_store


def parse_media_type(content_type: str | None) -> str:
    """Strip parameters from a Content-Type value and lowercase it."""
    media_type = (content_type or "").split(";", 1)[0].strip().lower()
    if not media_type:
        raise InvalidUploadError("Invalid Content-Type", detail=f"got {content_type!r}")
    return media_type
