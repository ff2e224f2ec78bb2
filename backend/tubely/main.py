from contextlib import asynccontextmanager

from fastapi import FastAPI

from tubely.api.deps import IdentityResolver, header_identity
from tubely.api.errors import register_exception_handlers
from tubely.api.routers import videos as videos_router
from tubely.core.config import Settings, get_settings
from tubely.core.logging import setup_logging
from tubely.services.assets import AssetStore
from tubely.services.pipeline import VideoUploadPipeline
from tubely.services.videos import InMemoryVideoStore, VideoStore


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    setup_logging(settings.log_level)
    if app.state.pipeline is None:
        app.state.pipeline = VideoUploadPipeline.from_settings(settings)
    app.state.asset_store.ensure_assets_dir()
    yield


def create_app(
    settings: Settings | None = None,
    video_store: VideoStore | None = None,
    identity: IdentityResolver | None = None,
    pipeline: VideoUploadPipeline | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(
        debug=settings.debug,
        title="Tubely API",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.video_store = video_store or InMemoryVideoStore()
    app.state.identity = identity or header_identity
    app.state.pipeline = pipeline
    app.state.asset_store = AssetStore(settings)

    register_exception_handlers(app)
    app.include_router(videos_router.router)

    return app


app = create_app()
