import os
import time
import logging
from contextlib import asynccontextmanager
from typing import List
from fastapi import FastAPI, APIRouter, HTTPException, Depends, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .db import get_session, init_db, engine
from .models import Producto
from .schemas import ProductoIn, ProductoOut

APP_NAME = "productos"
APP_ENV = os.getenv("APP_ENV", "production").strip().lower()
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LISTEN_PORT = int(os.getenv("LISTEN_PORT", "8000"))

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# ---- Startup: ensure schema + tables exist (idempotent) ----
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("starting %s (env=%s, db=%s)", APP_NAME, APP_ENV, engine.dialect.name)
    init_db()
    yield
    logger.info("stopping %s", APP_NAME)

def docs_enabled() -> bool:
    # Swagger UI and the OpenAPI document are only published in development
    return os.getenv("APP_ENV", "production").strip().lower() == "development"

_docs = docs_enabled()
app = FastAPI(
    title=APP_NAME,
    lifespan=lifespan,
    docs_url="/docs" if _docs else None,
    redoc_url="/redoc" if _docs else None,
    openapi_url="/openapi.json" if _docs else None,
)
router = APIRouter(prefix="/api/productos", tags=["productos"])

# ---- Prometheus metrics ----
REQS = Counter("http_requests_total", "Total HTTP requests", ["service", "path", "method", "status"])
LAT  = Histogram("http_request_duration_seconds", "Request latency", ["service", "path", "method"])

def _route_path(request: Request) -> str:
    # route template, so ids do not become separate series
    route = request.scope.get("route")
    return getattr(route, "path", "unmatched")

@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    path = _route_path(request)
    REQS.labels(APP_NAME, path, request.method, response.status_code).inc()
    LAT.labels(APP_NAME, path, request.method).observe(time.time() - start)
    return response

@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "internal server error"})

@app.get("/", response_class=PlainTextResponse)
def root():
    return "API REST Python funcionando!"

@app.get("/health", response_class=PlainTextResponse)
def health():
    return "ok"

@app.get("/metrics")
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

def _get_or_404(session: Session, pid: int) -> Producto:
    p = session.get(Producto, pid)
    if not p:
        logger.debug("producto %s not found", pid)
        raise HTTPException(status_code=404, detail="not found")
    return p

@router.get("", response_model=List[ProductoOut])
def list_productos(session: Session = Depends(get_session)):
    rows = session.execute(select(Producto)).scalars().all()
    return rows

@router.get("/{pid}", response_model=ProductoOut)
def get_producto(pid: int, session: Session = Depends(get_session)):
    return _get_or_404(session, pid)

@router.post("", response_model=ProductoOut, status_code=201)
def create_producto(payload: ProductoIn, response: Response, session: Session = Depends(get_session)):
    # payload.id is ignored
    p = Producto(name=payload.name, price=payload.price, stock=payload.stock)
    session.add(p)
    session.flush()
    session.refresh(p)
    response.headers["Location"] = f"{router.prefix}/{p.id}"
    logger.info("created producto %s", p.id)
    return p

@router.put("/{pid}", response_model=ProductoOut)
def update_producto(pid: int, payload: ProductoIn, session: Session = Depends(get_session)):
    p = _get_or_404(session, pid)
    p.name = payload.name
    p.price = payload.price
    p.stock = payload.stock
    session.add(p)
    session.flush()
    session.refresh(p)
    logger.info("updated producto %s", p.id)
    return p

@router.delete("/{pid}", status_code=204)
def delete_producto(pid: int, session: Session = Depends(get_session)):
    p = _get_or_404(session, pid)
    session.delete(p)
    logger.info("deleted producto %s", pid)
    return Response(status_code=204)

app.include_router(router)

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=LISTEN_PORT)
