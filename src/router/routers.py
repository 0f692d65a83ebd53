# src/router/routers.py

from fastapi import FastAPI
from src.modules.flashcards.flashcard_controller import router as flashcards_router
from src.modules.learning_path.learning_path_controller import router as learning_path_router
from src.modules.search.search_controller import router as search_router
from src.modules.summaries.summary_controller import router as summaries_router

def include_routers(app: FastAPI) -> None:
    app.include_router(search_router)
    app.include_router(summaries_router)
    app.include_router(flashcards_router)
    app.include_router(learning_path_router)
