# lexai/errors.py

from typing import Any, List, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from lexai.utils.logging import logger


class LexAIError(Exception):
    """Base for every error the API maps to a structured response."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def payload(self) -> dict:
        return {"message": self.message}


class ValidationError(LexAIError):
    status_code = 400
    message = "Validation error"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Any]] = None):
        super().__init__(message)
        self.errors = errors or []

    def payload(self) -> dict:
        body = super().payload()
        if self.errors:
            body["errors"] = self.errors
        return body


class AuthenticationError(LexAIError):
    status_code = 401
    message = "Unauthorized: Invalid token"


class AuthorizationError(LexAIError):
    status_code = 403
    message = "You are not authorized to access this resource"


class NotFoundError(LexAIError):
    status_code = 404
    message = "Not found"


class ConflictError(LexAIError):
    status_code = 409
    message = "Resource already exists"


class RateLimitError(LexAIError):
    status_code = 429
    message = "Rate limit exceeded. Please try again later."

    def __init__(self, retry_after: int):
        super().__init__()
        self.retry_after = retry_after

    def payload(self) -> dict:
        body = super().payload()
        body["retryAfter"] = self.retry_after
        return body


class ExternalServiceError(LexAIError):
    status_code = 500
    message = "External service failure"


class ExtractionError(ValidationError):
    message = "Failed to extract text from PDF"


class EmbeddingError(ExternalServiceError):
    message = "Failed to create document embeddings"


class GenerationError(ExternalServiceError):
    message = "Failed to generate response"


class IndexNotFoundError(NotFoundError):
    message = "Document index not found"


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(LexAIError)
    async def lexai_error_handler(request: Request, exc: LexAIError):
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__} on path {request.url.path}: {exc.__cause__ or exc}")
        else:
            logger.warning(f"{type(exc).__name__} on path {request.url.path}: {exc.message}")
        headers = None
        if isinstance(exc, RateLimitError):
            headers = {"Retry-After": str(exc.retry_after)}
        return JSONResponse(
            status_code=exc.status_code, content=exc.payload(), headers=headers
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Validation error on path {request.url.path}: {exc.errors()}")
        errors = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"message": "Validation error", "errors": jsonable_encoder(errors)},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on path {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={"message": "Internal server error"},
        )
