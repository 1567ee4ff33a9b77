import time
import asyncio
import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv

# Load environment variables from .env file before anything else
load_dotenv()

from careslot.core.config import settings
from careslot.core.logging import setup_logging, request_id_ctx
from careslot.core.errors import SchedulingError
from careslot.core.db import init_models
from careslot.api.router import api_router
from careslot.modules.appointments.reaper import run_booking_reaper
from careslot.platform.provider_registry import registry

setup_logging()
app = FastAPI(title=settings.APP_NAME)

logger = logging.getLogger(__name__)

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id", "-")
    request_id_ctx.set(rid)
    response = await call_next(request)
    return response

@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    response = await call_next(request)

    process_time = (time.time() - start_time) * 1000
    logger.info(
        f"Request: {request.method} {request.url.path} - Response: {response.status_code} - Time: {process_time:.2f}ms"
    )
    return response

@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

_HTTP_CODES = {401: "unauthorized", 403: "forbidden", 404: "not_found", 405: "method_not_allowed"}

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": _HTTP_CODES.get(exc.status_code, "http_error"), "message": str(exc.detail), "field": None}},
        headers=getattr(exc, "headers", None),
    )

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    # drop the "body"/"query"/"path" prefix so the field matches the JSON key
    loc = [str(p) for p in first.get("loc", ())[1:]]
    return JSONResponse(
        status_code=422,
        content={"error": {"code": "validation_error", "message": first.get("msg", "invalid request"), "field": ".".join(loc) or None}},
    )

@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error for request {request.method} {request.url.path}", exc_info=True)
    return JSONResponse(
        status_code=503,
        content={"error": {"code": "server_error", "message": "The scheduling store is unavailable; retry shortly.", "field": None}},
    )

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.critical(f"Unhandled exception for request {request.method} {request.url.path}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "server_error", "message": "An internal server error occurred.", "field": None}},
    )

@app.on_event("startup")
async def on_startup():
    await init_models()
    app.state.reaper_task = asyncio.create_task(run_booking_reaper())

@app.on_event("shutdown")
async def on_shutdown():
    task = getattr(app.state, "reaper_task", None)
    if task:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
    await registry.event_bus().close()


app.include_router(api_router, prefix=settings.API_PREFIX)
