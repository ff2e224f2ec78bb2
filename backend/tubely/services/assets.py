import logging
import shutil
from pathlib import Path, PurePosixPath
from typing import BinaryIO
from urllib.parse import urlparse

from tubely.core.config import Settings
from tubely.core.errors import StagingError, UnsupportedMediaTypeError
from tubely.services.keys import generate_asset_name
from tubely.services.staging import COPY_CHUNK_SIZE, remove_quietly

logger = logging.getLogger(__name__)

THUMBNAIL_MEDIA_TYPES = frozenset({"image/jpeg", "image/png"})


class AssetStore:
    """Thumbnails kept on local disk under ``settings.assets_root``."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.root = Path(settings.assets_root)

    def ensure_assets_dir(self) -> None:
        self.root.mkdir(mode=0o755, parents=True, exist_ok=True)

    def asset_disk_path(self, asset_name: str) -> Path:
        return self.root / asset_name

    def asset_url(self, asset_name: str) -> str:
        return f"http://localhost:{self.settings.port}/assets/{asset_name}"

    def save_thumbnail(
        self,
        reader: BinaryIO,
        media_type: str,
        previous_url: str | None = None,
    ) -> str:
        if media_type not in THUMBNAIL_MEDIA_TYPES:
            raise UnsupportedMediaTypeError(
                "Invalid content type",
                detail=f"thumbnail must be jpeg or png, got {media_type!r}",
            )

        self.ensure_assets_dir()
        asset_name = generate_asset_name(media_type)
        target = self.asset_disk_path(asset_name)
        try:
            with target.open("wb") as out:
                shutil.copyfileobj(reader, out, COPY_CHUNK_SIZE)
        except OSError as exc:
            remove_quietly(target)
            raise StagingError("Couldn't copy file", detail=str(exc)) from exc

        if previous_url:
            self._remove_previous(previous_url)

        logger.info("Stored thumbnail %s", target)
        return self.asset_url(asset_name)

    def _remove_previous(self, previous_url: str) -> None:
        name = PurePosixPath(urlparse(previous_url).path).name
        if not name:
            return
        remove_quietly(self.asset_disk_path(name))
