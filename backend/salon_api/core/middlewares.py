"""
HTTP middlewares and exception handlers for the FastAPI application.
"""

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from shared.config.logging import salon_api_logger as logger
from shared.infrastructure.correlation import CorrelationIdMiddleware
from shared.utils.exceptions import AppException, ErrorKind
from shared.utils.schemas import ErrorOutput


class ContentTypeValidationMiddleware(BaseHTTPMiddleware):
    """
    Validate Content-Type for requests with body.

    Returns 415 Unsupported Media Type unless the body is JSON.
    """

    METHODS_WITH_BODY = {"POST", "PUT", "PATCH"}

    async def dispatch(self, request: Request, call_next):
        if request.method in self.METHODS_WITH_BODY:
            content_type = request.headers.get("content-type", "")
            if content_type and not content_type.startswith("application/json"):
                return JSONResponse(
                    status_code=415,
                    content=ErrorOutput(
                        kind=ErrorKind.VALIDATION,
                        detail="Tipo de conteúdo não suportado. Use application/json",
                        context={"content_type": content_type},
                    ).model_dump(),
                )
        return await call_next(request)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Render domain errors as ErrorOutput with the error's status code."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_output().model_dump(mode="json"),
        headers=exc.headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and parameters share the ValidationError shape."""
    errors = jsonable_encoder(exc.errors())
    field = ".".join(str(p) for p in errors[0]["loc"][1:]) if errors else None
    return JSONResponse(
        status_code=400,
        content=ErrorOutput(
            kind=ErrorKind.VALIDATION,
            detail="Requisição inválida",
            context={"field": field, "errors": errors},
        ).model_dump(mode="json"),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error", path=request.url.path, error=str(exc), exc_info=True)
    return JSONResponse(
        status_code=500,
        content=ErrorOutput(kind=ErrorKind.INTERNAL, detail="Erro interno").model_dump(),
    )


def register_middlewares(app: FastAPI) -> None:
    """
    Register middlewares and exception handlers.

    Middlewares run in reverse order of registration: the correlation id is
    bound before content-type validation runs.
    """
    app.add_middleware(ContentTypeValidationMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
