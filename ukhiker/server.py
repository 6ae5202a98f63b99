import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware

from ukhiker.core.config import LOG_LEVEL, cors_origins, is_development
from ukhiker.core.database import init_models, close_engine
from ukhiker.core.errors import AppError
from ukhiker.services.payment_gateway import build_gateway
from ukhiker.api.root import router as root_router
from ukhiker.api.auth import router as auth_router
from ukhiker.api.treks import router as treks_router
from ukhiker.api.payments import router as payments_router

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("ukhiker")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_models()
    app.state.payment_gateway = build_gateway()
    logger.info("Database ready, payment gateway configured")
    try:
        yield
    finally:
        await close_engine()
        logger.info("Database connections closed")


# Create the main app
app = FastAPI(title="UkHiker API", lifespan=lifespan)


def _error_body(message: str, detail=None) -> dict:
    return {
        "success": False,
        "message": message,
        "error": detail if (is_development() and detail is not None) else {},
    }


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in e.get("loc", ()) if p != "body"), "message": e.get("msg")}
        for e in exc.errors()
    ]
    body = _error_body("Invalid request", str(exc))
    body["errors"] = errors
    return JSONResponse(status_code=400, content=body)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        message = f"Cannot find {request.url.path} on this server"
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(message),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content=_error_body("An unexpected error occurred", str(exc)))


app.include_router(root_router)
app.include_router(auth_router)
app.include_router(treks_router)
app.include_router(payments_router)

app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=cors_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
)
