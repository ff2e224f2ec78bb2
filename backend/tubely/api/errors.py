import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tubely.core.errors import TubelyError

logger = logging.getLogger(__name__)


async def handle_tubely_error(request: Request, exc: TubelyError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TubelyError, handle_tubely_error)
