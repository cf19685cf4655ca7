import logging

from fastapi import FastAPI, APIRouter, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from typing import Annotated

from chatroom import __version__
from chatroom.config import get_settings
from chatroom.dependencies import get_store
from chatroom.errors import ChatroomError
from chatroom.routers import users, assistants, threads, files, store
from chatroom.store import FlatStore

logger = logging.getLogger(__name__)


router = APIRouter()
router.include_router(users.router, prefix="/api")
router.include_router(assistants.router, prefix="/api")
router.include_router(threads.router, prefix="/api")
router.include_router(files.router, prefix="/api")


@router.get("/")
def index(db: Annotated[FlatStore, Depends(get_store)]):
    return {
        "message": "Chatroom API is running",
        "endpoints": [f"/{resource}" for resource in db.resources()],
    }


@router.get("/health")
async def health():
    return {"status": "healthy", "message": "API is running"}


# registered last: "/{resource}" would otherwise shadow the routes above
router.include_router(store.router, prefix="")


async def chatroom_error_handler(request: Request, e: ChatroomError) -> JSONResponse:
    if e.status_code >= 500:
        logger.error("%s on %s %s: %s", type(e).__name__, request.method, request.url.path, e.message)
    else:
        logger.info("%s on %s %s: %s", type(e).__name__, request.method, request.url.path, e.message)
    return JSONResponse(status_code=e.status_code, content={"error": e.message})


async def validation_error_handler(request: Request, e: ValidationError) -> JSONResponse:
    # raised when a stored record no longer fits its model
    logger.error("Validation error on %s %s: %s", request.method, request.url.path, e)
    return JSONResponse(status_code=500, content={"error": f"Malformed {e.title} record"})


def configure_app(app: FastAPI):
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ChatroomError, chatroom_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.include_router(router, prefix="")


def create_app():
    app = FastAPI(title="Chatroom", version=__version__)
    configure_app(app)
    return app


def main():
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    app = create_app()
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
