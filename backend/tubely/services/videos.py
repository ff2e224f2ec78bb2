import threading
from datetime import datetime, timezone
from typing import Protocol
from uuid import UUID

from tubely.schemas.video import VideoRecord


class VideoStore(Protocol):
    def get_video(self, video_id: UUID) -> VideoRecord | None: ...

    def update_video(self, record: VideoRecord) -> None: ...


class InMemoryVideoStore:
    """Process-local video store intended for development use."""

    def __init__(self, records: list[VideoRecord] | None = None) -> None:
        self._lock = threading.Lock()
        self._records: dict[UUID, VideoRecord] = {}
        for record in records or []:
            self._records[record.id] = record

    def create_video(self, record: VideoRecord) -> VideoRecord:
        with self._lock:
            self._records[record.id] = record.model_copy()
        return record

    def get_video(self, video_id: UUID) -> VideoRecord | None:
        with self._lock:
            record = self._records.get(video_id)
            return record.model_copy() if record else None

    def update_video(self, record: VideoRecord) -> None:
        with self._lock:
            if record.id not in self._records:
                raise KeyError(record.id)
            self._records[record.id] = record.model_copy(
                update={"updated_at": datetime.now(timezone.utc)}
            )
