from fastapi import Request, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from app.core.exceptions import BusinessLogicException, DatabaseException, ExternalServiceException
import logging

logger = logging.getLogger(__name__)

async def business_logic_exception_handler(request: Request, exc: BusinessLogicException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc)}
    )

async def database_exception_handler(request: Request, exc: DatabaseException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc)}
    )

async def external_service_exception_handler(request: Request, exc: ExternalServiceException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc)}
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        errors.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    logger.info(f"Rejected invalid request {request.method} {request.url.path}: {errors}")
    return JSONResponse(
        status_code=400,
        content={"detail": "; ".join(errors) or "Invalid request"}
    )

def init_exception_handlers(app: FastAPI):
    app.add_exception_handler(BusinessLogicException, business_logic_exception_handler)
    app.add_exception_handler(DatabaseException, database_exception_handler)
    app.add_exception_handler(ExternalServiceException, external_service_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
