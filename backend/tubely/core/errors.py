"""Error taxonomy for the upload pipeline.

Every error carries a short, client-safe ``reason`` and the HTTP status the
transport layer should answer with. Tool output and parser messages go into
``detail``, which is logged but never serialized.
"""

from typing import Any


class TubelyError(Exception):
    status_code: int = 500
    reason: str = "Internal error"

    def __init__(self, reason: str | None = None, *, detail: str | None = None) -> None:
        if reason is not None:
            self.reason = reason
        self.detail = detail
        super().__init__(self.reason if detail is None else f"{self.reason}: {detail}")

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.reason}


class UnsupportedMediaTypeError(TubelyError):
    status_code = 400
    reason = "Unsupported media type"


class InvalidUploadError(TubelyError):
    status_code = 400
    reason = "Invalid upload"


class OwnershipError(TubelyError):
    status_code = 401
    reason = "Video doesn't belong to user"


class UnauthenticatedError(TubelyError):
    status_code = 401
    reason = "Couldn't validate caller identity"


class PersistenceError(TubelyError):
    reason = "Couldn't update video"


class VideoNotFoundError(TubelyError):
    status_code = 404
    reason = "Couldn't find video"


class StagingError(TubelyError, OSError):
    reason = "Could not write file to disk"


class ProbeError(TubelyError):
    reason = "Could not get aspect ratio"


class NoStreamsError(ProbeError):
    reason = "No video stream found"


class RemuxError(TubelyError):
    reason = "Could not process video for fast start"


class StorageError(TubelyError):
    reason = "Error uploading file to storage"
