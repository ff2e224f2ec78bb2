import json
import os
import sys
from collections.abc import Sequence
from pathlib import Path
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Ensure project root is on sys.path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from tubely.core.config import Settings, get_settings
from tubely.core.errors import StorageError
from tubely.schemas import VideoRecord
from tubely.services.inspector import StreamInspector
from tubely.services.pipeline import VideoUploadPipeline
from tubely.services.process import ProcessResult
from tubely.services.remux import FastStartRemuxer
from tubely.services.storage import StorageService
from tubely.services.videos import InMemoryVideoStore

MP4_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 64 + b"mdat" + os.urandom(512)


class FakeRunner:
    """Stands in for ffprobe/ffmpeg without spawning processes."""

    def __init__(
        self,
        width: int = 1280,
        height: int = 720,
        probe_stdout: str | None = None,
        probe_returncode: int = 0,
        remux_returncode: int = 0,
        partial_output: bool = False,
    ) -> None:
        self.width = width
        self.height = height
        self.probe_stdout = probe_stdout
        self.probe_returncode = probe_returncode
        self.remux_returncode = remux_returncode
        self.partial_output = partial_output
        self.calls: list[list[str]] = []

    def run(self, args: Sequence[str]) -> ProcessResult:
        args = list(args)
        self.calls.append(args)
        tool = Path(args[0]).name
        if tool == "ffprobe":
            return self._probe()
        if tool == "ffmpeg":
            return self._remux(Path(args[args.index("-i") + 1]), Path(args[-1]))
        raise AssertionError(f"unexpected command {args}")

    def _probe(self) -> ProcessResult:
        if self.probe_returncode:
            return ProcessResult(self.probe_returncode, "", "moov atom not found")
        if self.probe_stdout is not None:
            return ProcessResult(0, self.probe_stdout, "")
        payload = {
            "streams": [
                {"index": 0, "codec_type": "video", "width": self.width, "height": self.height},
                {"index": 1, "codec_type": "audio"},
            ]
        }
        return ProcessResult(0, json.dumps(payload), "")

    def _remux(self, source: Path, target: Path) -> ProcessResult:
        if self.remux_returncode:
            if self.partial_output:
                target.write_bytes(b"partial")
            return ProcessResult(self.remux_returncode, "", "Invalid data found when processing input")
        target.write_bytes(source.read_bytes())
        return ProcessResult(0, "", "")

    def tools_called(self) -> list[str]:
        return [Path(call[0]).name for call in self.calls]


class DummyStorage(StorageService):
    def __init__(self, settings: Settings, fail: bool = False) -> None:  # type: ignore[super-init-not-called]
        self.settings = settings
        self.bucket = settings.s3_bucket
        self.region = settings.s3_region
        self.fail = fail
        self.uploads: list[dict] = []

    def upload_file(self, path, key, content_type):  # type: ignore[override]
        if self.fail:
            raise StorageError(detail="AccessDenied")
        self.uploads.append(
            {
                "key": key,
                "content_type": content_type,
                "body": Path(path).read_bytes(),
            }
        )
        return self.object_url(key)


@pytest.fixture(scope="session", autouse=True)
def configure_environment():
    os.environ["ENV"] = "test"
    os.environ["S3_BUCKET"] = "test-bucket"
    os.environ["S3_REGION"] = "us-east-2"
    os.environ["PORT"] = "8091"
    get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path) -> Settings:
    upload_tmp = tmp_path / "scratch"
    upload_tmp.mkdir()
    return get_settings().model_copy(
        update={
            "upload_tmp_dir": upload_tmp,
            "assets_root": tmp_path / "assets",
        }
    )


@pytest.fixture
def scratch_dir(settings) -> Path:
    return settings.upload_tmp_dir


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def storage(settings) -> DummyStorage:
    return DummyStorage(settings)


@pytest.fixture
def pipeline(settings, runner, storage) -> VideoUploadPipeline:
    return VideoUploadPipeline(
        inspector=StreamInspector(runner),
        remuxer=FastStartRemuxer(runner),
        storage=storage,
        tmp_dir=settings.upload_tmp_dir,
    )


@pytest.fixture
def owner_id():
    return uuid4()


@pytest.fixture
def video(owner_id) -> VideoRecord:
    return VideoRecord(user_id=owner_id, title="Boots", description="A pair of boots")


@pytest.fixture
def video_store(video) -> InMemoryVideoStore:
    return InMemoryVideoStore([video])


@pytest.fixture
def app_instance(settings, video_store, pipeline):
    from tubely.main import create_app

    return create_app(settings=settings, video_store=video_store, pipeline=pipeline)


@pytest_asyncio.fixture
async def client(app_instance):
    transport = ASGITransport(app=app_instance)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
