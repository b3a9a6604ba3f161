"""HTTP surface of the RSVP intake server.

Endpoints:
- POST /submit-rsvp -> store one RSVP submission (multipart/form-data)
- GET  /health      -> liveness
"""

from typing import Annotated

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rsvp.api.uploads import UploadRejectedError, read_uploads
from rsvp.config.settings import Settings
from rsvp.logging.logger import Log
from rsvp.persistence.engine import PersistenceEngine, build_engine
from rsvp.persistence.exceptions import PersistenceError, SubmissionValidationError


def _failure(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": error})


def create_app(
    settings: Settings | None = None,
    engine: PersistenceEngine | None = None,
) -> FastAPI:
    """Build the FastAPI app around a persistence engine."""
    settings = settings or Settings()
    engine = engine or build_engine(settings)

    app = FastAPI(title="RSVP Intake API", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        Log.warning(f"Rejected malformed request to {request.url.path}: {exc.errors()}")
        return _failure(400, "bad_request")

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    # sync handler: runs in the threadpool, so store locking stays blocking-safe
    @app.post("/submit-rsvp")
    def submit_rsvp(
        main_email: Annotated[str, Form(alias="mainEmail")] = "",
        guests: Annotated[str, Form()] = "[]",
        passports: Annotated[list[UploadFile] | None, File()] = None,
    ) -> JSONResponse:
        try:
            uploads = read_uploads(passports, settings)
            result = engine.handle_submission(main_email, guests, uploads)
        except UploadRejectedError as exc:
            Log.warning(
                f"Upload rejected: {exc}",
                category="upload_rejected",
                main_email=main_email,
            )
            return _failure(exc.status_code, "upload_rejected")
        except SubmissionValidationError as exc:
            Log.warning(
                f"Submission rejected: {exc}",
                category=exc.category,
                main_email=main_email,
            )
            return _failure(400, "bad_request")
        except PersistenceError as exc:
            Log.error(
                f"Submission failed: {exc}",
                category=exc.category,
                main_email=main_email,
            )
            return _failure(500, "server_error")
        except Exception as exc:
            Log.exception(
                f"Unexpected submission failure: {exc}",
                category="server_error",
                main_email=main_email,
            )
            return _failure(500, "server_error")

        return JSONResponse(
            content={"ok": True, "guests": result.created_count, "images": result.image_count}
        )

    return app
