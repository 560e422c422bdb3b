# /backend/pos_app/main.py

from __future__ import annotations

from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from pos_app.config import get_settings
from pos_app.db import get_db
from pos_app.errors import register_exception_handlers
from pos_app.logging_conf import setup_logging, get_logger
from pos_app.api.routers import auth, tables, categories, menu_items, public, users, orders, analytics, performance

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.log_level)
    # refuse to serve without a signing secret
    settings.require_jwt_secret()
    logger.info("POS API starting", extra={"token_lifetime_s": int(settings.jwt_expires_in.total_seconds())})
    yield
    logger.info("POS API stopped")


app = FastAPI(
    title="Restaurant POS API",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(get_settings().cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth.router)
app.include_router(tables.router)
app.include_router(categories.router)
app.include_router(menu_items.router)
app.include_router(public.router)
app.include_router(users.router)
app.include_router(orders.router)
app.include_router(analytics.router)
app.include_router(performance.router)


@app.get("/health")
async def health():
    return {"ok": True}


@app.get("/db-health")
async def db_health(db: AsyncSession = Depends(get_db)):
    result = await db.execute(text("SELECT 1"))
    return {"db": "ok", "result": result.scalar_one()}
