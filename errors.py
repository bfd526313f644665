# errors.py
"""
Typed failures raised by the billing services.

Every failure carries a ``kind`` and a human-readable message. Routers do not
catch them: the handlers registered here turn them into JSON responses of the
form ``{"kind": ..., "detail": ...}`` after the session dependency has rolled
the transaction back. Requests that fail schema validation get the same
shape with kind ``validation``.
"""
import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

logger = structlog.get_logger(__name__)


class BillingError(Exception):
     """Base class for every failure the billing core reports to its caller."""

     kind = "error"
     status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

     def __init__(self, message: str):
          super().__init__(message)
          self.message = message

     def to_dict(self) -> dict:
          return {"kind": self.kind, "detail": self.message}


class ValidationFailure(BillingError):
     """Rejected input: empty item set, non-positive amount, missing selection."""

     kind = "validation"
     status_code = status.HTTP_400_BAD_REQUEST


class NotFoundFailure(BillingError):
     """The record does not exist or belongs to another owner."""

     kind = "not_found"
     status_code = status.HTTP_404_NOT_FOUND


class IntegrityFailure(BillingError):
     """Unique-number collision or a referenced record is missing. Retry the whole creation."""

     kind = "integrity"
     status_code = status.HTTP_409_CONFLICT


class InvoiceStateFailure(BillingError):
     """The invoice's status does not allow the requested operation."""

     kind = "state"
     status_code = status.HTTP_409_CONFLICT


class ConflictFailure(BillingError):
     """Another writer changed the invoice first."""

     kind = "conflict"
     status_code = status.HTTP_409_CONFLICT


class NotificationFailure(BillingError):
     """The invoice e-mail could not be handed to the mail provider."""

     kind = "notification"
     status_code = status.HTTP_502_BAD_GATEWAY


class ConsistencyFailure(BillingError):
     """Derived totals disagree with their sources. Always a bug."""

     kind = "consistency"
     status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def describe_validation_errors(errors) -> str:
     """Flatten FastAPI's error list into one message, e.g. ``amount: Input should be greater than 0``."""
     messages = []
     for error in errors:
          location = ".".join(str(part) for part in error.get("loc", ())[1:])
          messages.append(f"{location}: {error['msg']}" if location else error["msg"])
     return "; ".join(messages)


def register_error_handlers(app: FastAPI) -> None:
     @app.exception_handler(BillingError)
     async def billing_error(request: Request, exc: BillingError):
          if isinstance(exc, ConsistencyFailure):
               logger.error("Invoice consistency violated", path=request.url.path, detail=exc.message)
          return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

     @app.exception_handler(RequestValidationError)
     async def request_validation_error(request: Request, exc: RequestValidationError):
          failure = ValidationFailure(describe_validation_errors(exc.errors()))
          logger.info("Request rejected", path=request.url.path, detail=failure.message)
          return JSONResponse(status_code=failure.status_code, content=failure.to_dict())

     @app.exception_handler(IntegrityError)
     async def integrity_error(request: Request, exc: IntegrityError):
          logger.warning("Database integrity error", path=request.url.path, error=str(exc.orig))
          failure = IntegrityFailure("The record conflicts with existing data; retry the operation")
          return JSONResponse(status_code=failure.status_code, content=failure.to_dict())

     @app.exception_handler(StaleDataError)
     async def stale_data(request: Request, exc: StaleDataError):
          failure = ConflictFailure("The invoice was modified concurrently; reload and retry")
          return JSONResponse(status_code=failure.status_code, content=failure.to_dict())
