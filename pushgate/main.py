import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException

from pushgate import __version__
from pushgate.api.approval import router as approval_router
from pushgate.api.auth import router as auth_router
from pushgate.api.credentials import router as credentials_router
from pushgate.api.notifications import router as notifications_router
from pushgate.api.push import router as push_router
from pushgate.api.stream import router as stream_router
from pushgate.api.subscription import router as subscription_router
from pushgate.core.config import cors_origins_list, settings
from pushgate.core.database import check_database, init_db
from pushgate.core.errors import PushgateError
from pushgate.core.rate_limit import limiter
from pushgate.logging import setup_logging
from pushgate.services.broadcast import BroadcastHub
from pushgate.services.token_store import build_token_store

setup_logging(level=settings.log_level)
log = logging.getLogger("pushgate")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    app.state.hub = BroadcastHub()
    app.state.token_store = build_token_store()
    if settings.secret_key == "change-me-in-production":
        log.warning("SECRET_KEY is the default value; set it in .env before deploying")
    if settings.allow_private_webhook_urls:
        log.warning("SSRF protection disabled: webhooks may target private network addresses")
    yield
    log.info("Shutting down: closing %d live SSE channel(s)", app.state.hub.connection_count())
    app.state.hub.close_all()
    await app.state.token_store.close()


app = FastAPI(
    title="Pushgate API",
    description="Web Push bildirimleri, onay süreçleri ve canlı olay akışı",
    version=__version__,
    lifespan=lifespan,
)
app.state.limiter = limiter


def _error_response(request: Request, status_code: int, detail: str) -> JSONResponse:
    rid = getattr(request.state, "request_id", None)
    body = {"error": detail, "status_code": status_code}
    if rid:
        body["request_id"] = rid
    return JSONResponse(status_code=status_code, content=body)


def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    log.warning("Rate limit exceeded: path=%s limit=%s", request.url.path, exc.detail)
    return _error_response(request, 429, "Çok fazla istek. Lütfen bir dakika bekleyin.")


def _validation_error_message(exc: RequestValidationError) -> str:
    errs = exc.errors()
    if not errs:
        return "Geçersiz istek."
    first = errs[0]
    loc = list(first.get("loc") or [])
    field = str(loc[-1]) if loc else None
    if first.get("type") == "missing":
        if field == "body":
            return "İstek gövdesi eksik."
        return f"Eksik alan: {field}." if field else "Eksik alan."
    return (first.get("msg") or "Geçersiz istek.").removeprefix("Value error, ")


def _jsonable_errors(errs) -> list:
    # ctx içinde exception nesneleri olabilir
    return [{k: v for k, v in e.items() if k in ("loc", "msg", "type")} for e in errs]


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errs = exc.errors()
    log.info(
        "Request validation error (422): path=%s method=%s detail=%s",
        request.url.path,
        request.method,
        errs,
    )
    rid = getattr(request.state, "request_id", None)
    body = {"error": _validation_error_message(exc), "status_code": 422, "detail": _jsonable_errors(errs)}
    if rid:
        body["request_id"] = rid
    return JSONResponse(status_code=422, content=body)


app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)


@app.exception_handler(PushgateError)
def pushgate_error_handler(request: Request, exc: PushgateError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return _error_response(request, exc.status_code, exc.message)


@app.exception_handler(HTTPException)
def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    response = _error_response(request, exc.status_code, exc.detail if isinstance(exc.detail, str) else str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled exception: path=%s %s", request.url.path, exc)
    return _error_response(request, 500, "Beklenmeyen sunucu hatası.")


@app.middleware("http")
async def request_id_and_latency(request: Request, call_next):
    request.state.request_id = str(uuid.uuid4())
    start = time.perf_counter()
    response = await call_next(request)
    latency_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-ID"] = request.state.request_id
    log.info(
        "request_id=%s method=%s path=%s status=%s latency_ms=%.2f",
        request.state.request_id,
        request.method,
        request.url.path,
        response.status_code,
        latency_ms,
    )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(auth_router)
app.include_router(push_router)
app.include_router(approval_router)
app.include_router(stream_router)
app.include_router(subscription_router)
app.include_router(credentials_router)
app.include_router(notifications_router)


@app.get("/health")
def health(request: Request):
    return {
        "status": "ok",
        "database": "ok" if check_database() else "error",
        "token_store": request.app.state.token_store.backend,
        "live_connections": request.app.state.hub.connection_count(),
    }
