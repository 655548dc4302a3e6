"""LangStudy — topic-based study articles with on-demand span analysis.

Run with: uvicorn backend:app
"""
import os
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from llm import TextModel, default_model
from log import get_logger
from routes import request_validation_handler, router
from store import ArticleStore, default_store

logger = get_logger("langstudy.backend")

CORS_ORIGINS = [o.strip() for o in os.environ.get("LANGSTUDY_CORS_ORIGINS", "*").split(",") if o.strip()]


def create_app(model: Optional[TextModel] = None, store: Optional[ArticleStore] = None) -> FastAPI:
    app = FastAPI(title="LangStudy")
    app.state.model = model if model is not None else default_model()
    app.state.store = store if store is not None else default_store()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=CORS_ORIGINS != ["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.include_router(router)
    logger.info(
        "App created",
        extra={
            "component": "backend",
            "detail": f"model={getattr(app.state.model, 'backend', 'custom')} store={getattr(app.state.store, 'backend', 'custom')}",
        },
    )
    return app


app = create_app()
