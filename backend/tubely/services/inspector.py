import logging
import os
import subprocess
from enum import Enum

from pydantic import ValidationError

from tubely.core.errors import NoStreamsError, ProbeError
from tubely.schemas.probe import StreamProbeResult
from tubely.services.process import ProcessRunner

logger = logging.getLogger(__name__)

LANDSCAPE_RATIO = 16 / 9
PORTRAIT_RATIO = 9 / 16
RATIO_TOLERANCE = 0.01


class AspectRatio(str, Enum):
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    OTHER = "other"

    @property
    def ratio_label(self) -> str:
        return {
            AspectRatio.LANDSCAPE: "16:9",
            AspectRatio.PORTRAIT: "9:16",
        }.get(self, "other")


def classify_aspect_ratio(width: int, height: int) -> AspectRatio:
    if width <= 0 or height <= 0:
        logger.warning("Stream has no usable dimensions (%dx%d)", width, height)
        return AspectRatio.OTHER

    ratio = width / height
    if abs(ratio - LANDSCAPE_RATIO) < RATIO_TOLERANCE:
        return AspectRatio.LANDSCAPE
    if abs(ratio - PORTRAIT_RATIO) < RATIO_TOLERANCE:
        return AspectRatio.PORTRAIT
    return AspectRatio.OTHER


class StreamInspector:
    """Classifies the first stream of a local media file with ffprobe."""

    def __init__(self, runner: ProcessRunner, ffprobe_path: str = "ffprobe") -> None:
        self.runner = runner
        self.ffprobe_path = ffprobe_path

    def build_probe_command(self, path: str | os.PathLike[str]) -> list[str]:
        return [
            self.ffprobe_path,
            "-v", "error",
            "-print_format", "json",
            "-show_streams",
            os.fspath(path),
        ]

    def probe(self, path: str | os.PathLike[str]) -> StreamProbeResult:
        try:
            result = self.runner.run(self.build_probe_command(path))
        except (OSError, subprocess.SubprocessError) as exc:
            raise ProbeError(detail=str(exc)) from exc

        if not result.ok:
            raise ProbeError(
                detail=f"ffprobe exited with {result.returncode}: {result.stderr.strip()}"
            )

        try:
            return StreamProbeResult.model_validate_json(result.stdout)
        except ValidationError as exc:
            raise ProbeError(detail=f"unparseable ffprobe output: {exc}") from exc

    def inspect_aspect_ratio(self, path: str | os.PathLike[str]) -> AspectRatio:
        probe = self.probe(path)
        if not probe.streams:
            raise NoStreamsError(detail=f"ffprobe reported no streams for {path}")

        first = probe.streams[0]
        aspect = classify_aspect_ratio(first.width, first.height)
        logger.debug(
            "Stream %d is %dx%d, classified as %s",
            first.index,
            first.width,
            first.height,
            aspect.value,
        )
        return aspect
