from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from mirsui.api import api_router
from mirsui.api.deps import client_address
from mirsui.core.config import Settings, get_settings
from mirsui.core.context import AppContext, build_context

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for the FastAPI application."""
    # Startup
    if app.state.context is None:
        try:
            logger.info("Connecting to Supabase...")
            app.state.context = await build_context(app.state.settings)
            logger.info("Application context ready")
        except Exception as e:
            logger.error(f"Error during startup: {e}")
            raise

    yield

    # Shutdown
    try:
        logger.info("Closing backend connections...")
        await app.state.context.backend.aclose()
        logger.info("Backend connections closed successfully")
    except Exception as e:
        logger.error(f"Error during shutdown: {e}")
        raise


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    message = str(first.get("msg", "Invalid request"))
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    if location and not message.lower().startswith(location[-1].lower()):
        return f"{location[-1]}: {message}"
    return message


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        context: Prebuilt application context. When omitted, the lifespan
            builds one from the environment settings at startup.
    """
    settings: Settings = context.settings if context else get_settings()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.APP_VERSION,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.context = context

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "detail": _validation_message(exc),
                "errors": jsonable_encoder(exc.errors()),
            },
        )

    @app.middleware("http")
    async def rate_limit_middleware(request: Request, call_next):
        app_context: Optional[AppContext] = request.app.state.context
        if app_context is not None and request.method != "OPTIONS":
            allowed, retry_after = await app_context.rate_limits.check("default", client_address(request))
            if not allowed:
                return JSONResponse(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    content={"detail": "Too many requests, please try again later"},
                    headers={"Retry-After": str(retry_after)},
                )
        return await call_next(request)

    # Set up CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=settings.cors_methods,
        allow_headers=settings.cors_headers,
    )

    app.include_router(api_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("mirsui.main:app", host=settings.HOST, port=settings.PORT, reload=settings.RELOAD)
