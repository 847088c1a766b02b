# macrocoach/main.py
import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from macrocoach.config import settings
from macrocoach.errors import ConstraintViolationError, InputIncompleteError, NotFoundError
from macrocoach.routers import activities, auth, clients, training

log = logging.getLogger("macrocoach")


def _configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(InputIncompleteError)
    async def input_incomplete_handler(request: Request, exc: InputIncompleteError):
        return JSONResponse(status_code=400, content={"error": exc.message, "details": exc.missing})

    @app.exception_handler(ConstraintViolationError)
    async def constraint_violation_handler(request: Request, exc: ConstraintViolationError):
        return JSONResponse(status_code=400, content={"error": exc.message, "details": exc.details})

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"error": str(exc)})

    # never leak internals
    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        log.error(
            "unhandled_error path=%s error=%r\n%s",
            request.url.path,
            exc,
            "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        )
        return JSONResponse(
            status_code=500,
            content={"error": {"code": "internal_error", "message": "Something went wrong. Please try again."}},
        )


def create_app() -> FastAPI:
    _configure_logging()
    app = FastAPI(title="MacroCoach API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", summary="Root")
    def root():
        return {"message": "MacroCoach API is running"}

    @app.get("/health", tags=["health"], summary="Health")
    def health():
        return {"status": "ok"}

    _register_error_handlers(app)

    app.include_router(auth.router, prefix="/auth", tags=["auth"])
    app.include_router(clients.router, prefix="/clients", tags=["clients"])
    app.include_router(training.router, prefix="/clients/{client_id}/training", tags=["training"])
    app.include_router(activities.router, prefix="/activities", tags=["activities"])

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    print(f"🚀 Starting MacroCoach API on http://{settings.API_HOST}:{settings.API_PORT}")
    uvicorn.run("macrocoach.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=True)
