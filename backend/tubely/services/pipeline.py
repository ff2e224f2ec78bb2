"""Video upload pipeline.

An upload moves through ``received -> staged -> inspected -> remuxed ->
uploaded -> finalized``. Any failure moves the run to ``failed``; every temp
file created up to that point is removed before the error reaches the
caller. Steps run strictly in order on the calling thread, and the external
tools are invoked synchronously.
"""

import logging
from contextlib import ExitStack
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import BinaryIO
from uuid import UUID

from tubely.core.config import Settings
from tubely.core.errors import OwnershipError, TubelyError, UnsupportedMediaTypeError
from tubely.schemas.video import VideoRecord
from tubely.services.inspector import AspectRatio, StreamInspector
from tubely.services.keys import derive_key
from tubely.services.process import ProcessRunner, SubprocessRunner
from tubely.services.remux import FastStartRemuxer
from tubely.services.staging import remove_quietly, stage
from tubely.services.storage import StorageService

logger = logging.getLogger(__name__)

ACCEPTED_MEDIA_TYPE = "video/mp4"


class PipelineState(str, Enum):
    RECEIVED = "received"
    STAGED = "staged"
    INSPECTED = "inspected"
    REMUXED = "remuxed"
    UPLOADED = "uploaded"
    FINALIZED = "finalized"
    FAILED = "failed"


@dataclass
class UploadRequest:
    body: BinaryIO
    media_type: str
    size: int | None = None


@dataclass
class PipelineRun:
    """Bookkeeping for a single pass through the pipeline."""

    state: PipelineState = PipelineState.RECEIVED
    history: list[PipelineState] = field(default_factory=lambda: [PipelineState.RECEIVED])
    temp_paths: list[Path] = field(default_factory=list)
    aspect: AspectRatio | None = None
    key: str | None = None
    error: Exception | None = None

    @property
    def terminal(self) -> bool:
        return self.state in (PipelineState.FINALIZED, PipelineState.FAILED)

    def advance(self, state: PipelineState) -> None:
        if self.terminal:
            raise RuntimeError(f"Run already {self.state.value}")
        logger.debug("Pipeline %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def fail(self, error: Exception) -> None:
        self.error = error
        self.advance(PipelineState.FAILED)


class VideoUploadPipeline:
    def __init__(
        self,
        inspector: StreamInspector,
        remuxer: FastStartRemuxer,
        storage: StorageService,
        tmp_dir: str | Path | None = None,
    ) -> None:
        self.inspector = inspector
        self.remuxer = remuxer
        self.storage = storage
        self.tmp_dir = tmp_dir

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        runner: ProcessRunner | None = None,
        storage: StorageService | None = None,
    ) -> "VideoUploadPipeline":
        runner = runner or SubprocessRunner(timeout=settings.process_timeout_seconds)
        return cls(
            inspector=StreamInspector(runner, settings.ffprobe_path),
            remuxer=FastStartRemuxer(runner, settings.ffmpeg_path),
            storage=storage or StorageService(settings),
            tmp_dir=settings.upload_tmp_dir,
        )

    def run(
        self,
        upload: UploadRequest,
        record: VideoRecord,
        caller_id: UUID,
        run: PipelineRun | None = None,
    ) -> VideoRecord:
        """Process ``upload`` and return ``record`` with its video URL set.

        The record is not persisted here.
        """
        run = run or PipelineRun()
        try:
            if record.user_id != caller_id:
                raise OwnershipError(detail=f"video {record.id} is owned by {record.user_id}")
            with ExitStack() as cleanup:
                updated = self._execute(upload, record, run, cleanup)
        except TubelyError as exc:
            run.fail(exc)
            logger.warning(
                "Upload for video %s failed: %s", record.id, exc.detail or exc.reason
            )
            raise
        except Exception as exc:
            run.fail(exc)
            logger.exception("Unexpected error processing video %s", record.id)
            raise

        run.advance(PipelineState.FINALIZED)
        return updated

    def _execute(
        self,
        upload: UploadRequest,
        record: VideoRecord,
        run: PipelineRun,
        cleanup: ExitStack,
    ) -> VideoRecord:
        if upload.media_type != ACCEPTED_MEDIA_TYPE:
            raise UnsupportedMediaTypeError(
                "Invalid file type, only MP4 is allowed",
                detail=f"got {upload.media_type!r}",
            )

        staged = stage(upload.body, directory=self.tmp_dir, expected_size=upload.size)
        cleanup.callback(staged.discard)
        run.temp_paths.append(staged.path)
        run.advance(PipelineState.STAGED)

        aspect = self.inspector.inspect_aspect_ratio(staged.path)
        run.aspect = aspect
        run.advance(PipelineState.INSPECTED)

        # ffmpeg may leave a partial output behind on failure
        processed = self.remuxer.output_path_for(staged.path)
        cleanup.callback(remove_quietly, processed)
        run.temp_paths.append(processed)
        processed = self.remuxer.remux_for_fast_start(staged.path)
        run.advance(PipelineState.REMUXED)

        key = derive_key(upload.media_type, aspect)
        logger.info(
            "Video %s aspect ratio %s (%s), key %s",
            record.id,
            aspect.ratio_label,
            aspect.value,
            key,
        )
        url = self.storage.upload_file(processed, key, upload.media_type)
        run.key = key
        run.advance(PipelineState.UPLOADED)

        return record.model_copy(update={"video_url": url})
