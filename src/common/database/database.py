# src/common/database/database.py

import logging
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.common.config import settings

logger = logging.getLogger(__name__)

def create_session_factory(database_url: str = settings.DATABASE_URL):
    """
    Build the async engine and a session factory bound to it.
    Returns (engine, session_factory).
    """
    engine = create_async_engine(
        database_url,
        echo=False,
        pool_pre_ping=True,
    )
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    return engine, session_factory

async def connect_to_db(app: FastAPI) -> None:
    """
    Create the engine once at startup and keep it on the application state.
    """
    engine, session_factory = create_session_factory()
    app.state.db_engine = engine
    app.state.session_factory = session_factory
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection established.")
    except Exception as e:
        # The API still starts; individual requests will surface the failure.
        logger.error(f"Database connection check failed: {e}")

async def close_db_connection(app: FastAPI) -> None:
    engine = getattr(app.state, "db_engine", None)
    if engine is not None:
        await engine.dispose()
        logger.info("Database connection closed.")

def get_session_factory(request: Request) -> async_sessionmaker:
    """
    Dependency returning the session factory, for services that open
    several independent sessions in one request.
    """
    return request.app.state.session_factory

async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency yielding a request-scoped AsyncSession.
    """
    async with request.app.state.session_factory() as session:
        yield session
