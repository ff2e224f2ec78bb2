import asyncio
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile

from tubely.api.deps import (
    get_asset_store,
    get_caller_id,
    get_pipeline,
    get_settings_dep,
    get_video_store,
    parse_media_type,
)
from tubely.core.config import Settings
from tubely.core.errors import (
    InvalidUploadError,
    OwnershipError,
    PersistenceError,
    VideoNotFoundError,
)
from tubely.schemas import ErrorResponse, VideoRecord
from tubely.services.assets import AssetStore
from tubely.services.pipeline import UploadRequest, VideoUploadPipeline
from tubely.services.videos import VideoStore

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/videos",
    tags=["videos"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)


def _load_owned_video(store: VideoStore, video_id: UUID, caller_id: UUID) -> VideoRecord:
    record = store.get_video(video_id)
    if record is None:
        raise VideoNotFoundError(detail=str(video_id))
    if record.user_id != caller_id:
        raise OwnershipError(detail=f"caller {caller_id} does not own video {video_id}")
    return record


def _check_size(upload: UploadFile, limit: int) -> None:
    if upload.size is not None and upload.size > limit:
        raise InvalidUploadError(
            "Upload too large", detail=f"{upload.size} bytes exceeds limit of {limit}"
        )


def _persist(store: VideoStore, record: VideoRecord) -> None:
    # the uploaded object is not rolled back; it stays in the bucket unreferenced
    try:
        store.update_video(record)
    except Exception as exc:
        logger.exception("Couldn't update video %s after upload", record.id)
        raise PersistenceError(detail=str(exc)) from exc


@router.post("/{video_id}/upload", response_model=VideoRecord)
async def upload_video(
    video_id: UUID,
    video: UploadFile = File(...),
    caller_id: UUID = Depends(get_caller_id),
    store: VideoStore = Depends(get_video_store),
    pipeline: VideoUploadPipeline = Depends(get_pipeline),
    settings: Settings = Depends(get_settings_dep),
) -> VideoRecord:
    record = _load_owned_video(store, video_id, caller_id)
    _check_size(video, settings.max_video_upload_bytes)
    media_type = parse_media_type(video.content_type)

    logger.info("Uploading video %s for user %s", video_id, caller_id)
    upload = UploadRequest(body=video.file, media_type=media_type, size=video.size)
    updated = await asyncio.to_thread(pipeline.run, upload, record, caller_id)
    _persist(store, updated)
    return updated


@router.post("/{video_id}/thumbnail", response_model=VideoRecord)
async def upload_thumbnail(
    video_id: UUID,
    thumbnail: UploadFile = File(...),
    caller_id: UUID = Depends(get_caller_id),
    store: VideoStore = Depends(get_video_store),
    assets: AssetStore = Depends(get_asset_store),
    settings: Settings = Depends(get_settings_dep),
) -> VideoRecord:
    record = _load_owned_video(store, video_id, caller_id)
    _check_size(thumbnail, settings.max_thumbnail_upload_bytes)
    media_type = parse_media_type(thumbnail.content_type)

    logger.info("Uploading thumbnail for video %s by user %s", video_id, caller_id)
    thumbnail_url = await asyncio.to_thread(
        assets.save_thumbnail, thumbnail.file, media_type, record.thumbnail_url
    )
    updated = record.model_copy(update={"thumbnail_url": thumbnail_url})
    _persist(store, updated)
    return updated
