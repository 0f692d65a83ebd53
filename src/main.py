# src/main.py

import logging

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.middleware import SlowAPIMiddleware
from slowapi.errors import RateLimitExceeded
from src.common.ai.deepseek import DeepSeekClient
from src.common.database.database import connect_to_db, close_db_connection
from src.common.config import settings
from src.common.rate_limit import limiter
from src.events.dispatcher import EventDispatcher
from src.events.listeners import analytics_listener
from src.router.routers import include_routers

# Centralized logging configuration
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

# Lifespan context manager for startup and shutdown events
@asynccontextmanager
async def lifespan(app: FastAPI):
    await connect_to_db(app)
    app.state.ai_client = DeepSeekClient()
    app.state.dispatcher = EventDispatcher(app.state.session_factory)
    analytics_listener.register(app.state.dispatcher)
    yield
    await app.state.ai_client.close()
    await close_db_connection(app)

# Initialize FastAPI app with lifespan manager
app = FastAPI(
    title="LearnHub AI API",
    description="AI-powered search, summaries, flashcards and learning paths for Salesforce learners.",
    version="1.0.0",
    lifespan=lifespan
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# Middleware for CORS using allowed origins from settings
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

include_routers(app)

# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    return {"status": "ok", "message": "API is running"}
