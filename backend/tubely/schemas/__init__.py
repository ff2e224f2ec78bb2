from tubely.schemas.probe import ProbeStream, StreamProbeResult
from tubely.schemas.video import ErrorResponse, VideoRecord

__all__ = [
    "ErrorResponse",
    "ProbeStream",
    "StreamProbeResult",
    "VideoRecord",
]
