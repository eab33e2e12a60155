import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gateway_dashboard.core.exceptions import (
    GatewayError,
    MalformedInputError,
    ProblemDetail,
    ProblemDetailException,
    SubmissionInProgress,
)

logger = logging.getLogger(__name__)

PROBLEM_JSON = "application/problem+json"


def _problem(status: int, title: str, detail: str) -> JSONResponse:
    body = ProblemDetail(status=status, title=title, detail=detail)
    return JSONResponse(status_code=status, content=body.model_dump(mode="json"), media_type=PROBLEM_JSON)


def install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ProblemDetailException)
    async def problem_handler(_: Request, exc: ProblemDetailException):
        return JSONResponse(
            status_code=exc.problem.status,
            content=exc.problem.model_dump(mode="json"),
            media_type=PROBLEM_JSON,
        )

    @app.exception_handler(MalformedInputError)
    async def malformed_input_handler(_: Request, exc: MalformedInputError):
        return _problem(400, "Malformed Input", str(exc))

    @app.exception_handler(ValueError)
    async def value_error_handler(_: Request, exc: ValueError):
        return _problem(400, "Bad Request", str(exc))

    @app.exception_handler(SubmissionInProgress)
    async def busy_handler(_: Request, exc: SubmissionInProgress):
        return _problem(409, "Conflict", str(exc) or "A message submission is already in progress")

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(_: Request, exc: GatewayError):
        return _problem(502, "Bad Gateway", exc.message)

    # Catch-all
    @app.exception_handler(Exception)
    async def unhandled(_: Request, exc: Exception):
        logger.exception("Unhandled error")
        return _problem(500, "Internal Server Error", str(exc))
