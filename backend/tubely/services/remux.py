import logging
import os
import subprocess
from pathlib import Path

from tubely.core.errors import RemuxError
from tubely.services.process import ProcessRunner
from tubely.services.staging import remove_quietly

logger = logging.getLogger(__name__)

PROCESSING_SUFFIX = ".processing"


class FastStartRemuxer:
    """Rewrites an MP4 so the moov atom precedes the media data.

    Streams are copied as-is; nothing is re-encoded. The input file is left
    untouched and the result is written next to it.
    """

    def __init__(self, runner: ProcessRunner, ffmpeg_path: str = "ffmpeg") -> None:
        self.runner = runner
        self.ffmpeg_path = ffmpeg_path

    @staticmethod
    def output_path_for(path: str | os.PathLike[str]) -> Path:
        return Path(os.fspath(path) + PROCESSING_SUFFIX)

    def build_remux_command(
        self, input_path: str | os.PathLike[str], output_path: str | os.PathLike[str]
    ) -> list[str]:
        return [
            self.ffmpeg_path,
            "-nostdin",
            "-v", "error",
            "-i", os.fspath(input_path),
            "-c", "copy",
            "-movflags", "faststart",
            "-f", "mp4",
            os.fspath(output_path),
        ]

    def remux_for_fast_start(self, path: str | os.PathLike[str]) -> Path:
        output_path = self.output_path_for(path)
        try:
            result = self.runner.run(self.build_remux_command(path, output_path))
        except (OSError, subprocess.SubprocessError) as exc:
            remove_quietly(output_path)
            raise RemuxError(detail=str(exc)) from exc

        if not result.ok:
            remove_quietly(output_path)
            raise RemuxError(
                detail=f"ffmpeg exited with {result.returncode}: {result.stderr.strip()}"
            )

        logger.debug("Remuxed %s to %s", path, output_path)
        return output_path
