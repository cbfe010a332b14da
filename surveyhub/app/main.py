# app/main.py
import logging

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from surveyhub.app.core.config import Settings, settings
from surveyhub.app.core.logging import get_logs_writer_logger
from surveyhub.app.routers import public, surveys
from surveyhub.db import Base
from surveyhub.db.session import build_engine, build_sessionmaker
from surveyhub.survey.errors import (
    NotFoundError,
    PermissionDenied,
    QuestionInUse,
    StorageError,
    TokenGenerationFailed,
)

logger = get_logs_writer_logger()


def create_app(app_settings: Settings = settings) -> FastAPI:
    """Build the application and the storage it owns.

    The engine and session factory live on `app.state`; routes get a
    `SurveyStore` per request through dependencies.
    """
    app = FastAPI(title=app_settings.APP_NAME, debug=app_settings.DEBUG)
    app.state.engine = build_engine(app_settings.DATABASE_URL)
    app.state.session_factory = build_sessionmaker(app.state.engine)

    app.include_router(surveys.router)
    app.include_router(public.router)

    @app.on_event("startup")
    def on_startup():
        Base.metadata.create_all(bind=app.state.engine)

    @app.on_event("shutdown")
    def on_shutdown():
        app.state.engine.dispose()

    @app.exception_handler(NotFoundError)
    @app.exception_handler(PermissionDenied)
    async def not_found_handler(request: Request, exc: Exception):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": "Survey not found or no longer available."},
        )

    @app.exception_handler(QuestionInUse)
    async def question_in_use_handler(request: Request, exc: QuestionInUse):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "detail": {
                    "message": "Questions that already have answers cannot be removed or re-keyed.",
                    "question_ids": exc.question_ids,
                }
            },
        )

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error("Storage error on %s %s: %r", request.method, request.url.path, exc.__cause__ or exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Something went wrong. Please try again."},
        )

    @app.exception_handler(TokenGenerationFailed)
    async def token_error_handler(request: Request, exc: TokenGenerationFailed):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Could not publish the survey. Please try again."},
        )

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    uvicorn.run("surveyhub.app.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
