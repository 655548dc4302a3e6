"""API route handlers for LangStudy."""
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from articles import analyze_text, create_article
from errors import ANALYZE_TEXT_FAILED, CREATE_ARTICLE_FAILED, StudyError, http_status
from llm import TextModel
from log import get_logger
from models import SUPPORTED_LANGUAGES
from store import ArticleStore

logger = get_logger("langstudy.routes")

router = APIRouter()


def get_model(request: Request) -> TextModel:
    return request.app.state.model


def get_store(request: Request) -> ArticleStore:
    return request.app.state.store


def _client_error(endpoint: str, public_message: str, error: StudyError) -> HTTPException:
    """Log the specific error server-side and build the fixed client-facing one."""
    status = http_status(error)
    logger.error(
        public_message,
        exc_info=error,
        extra={"endpoint": endpoint, "status_code": status, "error_kind": error.kind},
    )
    return HTTPException(status, public_message)


# Fixed client-facing message per operation, also used when the body is not valid JSON.
FAILURE_MESSAGES = {
    "/api/create-article": CREATE_ARTICLE_FAILED,
    "/api/regenerate-content": CREATE_ARTICLE_FAILED,
    "/api/analyze-text": ANALYZE_TEXT_FAILED,
}


async def request_validation_handler(request: Request, exc: RequestValidationError):
    message = FAILURE_MESSAGES.get(request.url.path)
    if message is None:
        return await request_validation_exception_handler(request, exc)
    logger.error(
        message,
        extra={"endpoint": request.url.path, "status_code": 400, "error_kind": "validation", "detail": str(exc.errors())},
    )
    return JSONResponse(status_code=400, content={"detail": message})


def _field(payload: Any, key: str):
    return payload.get(key) if isinstance(payload, dict) else None


@router.post("/api/create-article", tags=["Articles"], summary="Generate and store a study article")
async def create_article_endpoint(
    payload: Any = Body(None),
    model: TextModel = Depends(get_model),
    store: ArticleStore = Depends(get_store),
):
    logger.info("createArticle called", extra={"endpoint": "create-article", "lang": _field(payload, "targetLang")})
    try:
        article = await create_article(payload, model, store)
    except StudyError as e:
        raise _client_error("create-article", CREATE_ARTICLE_FAILED, e) from None
    return article.model_dump(mode="json")


@router.post("/api/regenerate-content", tags=["Articles"], summary="Generate a fresh article for the same topic")
async def regenerate_content_endpoint(
    payload: Any = Body(None),
    model: TextModel = Depends(get_model),
    store: ArticleStore = Depends(get_store),
):
    logger.info("regenerateContent called", extra={"endpoint": "regenerate-content", "lang": _field(payload, "targetLang")})
    try:
        article = await create_article(payload, model, store)
    except StudyError as e:
        raise _client_error("regenerate-content", CREATE_ARTICLE_FAILED, e) from None
    return article.model_dump(mode="json")


@router.post("/api/analyze-text", tags=["Articles"], summary="Explain a selected span of an article")
async def analyze_text_endpoint(
    payload: Any = Body(None),
    model: TextModel = Depends(get_model),
    store: ArticleStore = Depends(get_store),
):
    logger.info("analyzeText called", extra={"endpoint": "analyze-text", "article_id": _field(payload, "articleId")})
    try:
        result = await analyze_text(payload, model, store)
    except StudyError as e:
        raise _client_error("analyze-text", ANALYZE_TEXT_FAILED, e) from None
    return result.model_dump(mode="json")


@router.get("/api/languages", tags=["Reference"], summary="List supported languages")
async def get_languages():
    return SUPPORTED_LANGUAGES


@router.get("/api/health", tags=["System"], summary="Health check")
async def health_check(
    model: TextModel = Depends(get_model),
    store: ArticleStore = Depends(get_store),
):
    reachable = await model.ping()
    return {
        "status": "ok" if reachable else "degraded",
        "model": {"backend": getattr(model, "backend", "unknown"), "model": model.name, "reachable": reachable},
        "store": {"backend": getattr(store, "backend", "unknown")},
    }
