"""Article generation and text-span analysis handlers.

Both handlers take their model and store as arguments and raise StudyError
subclasses. Turning those into client-facing messages is left to routes.py.
"""
from datetime import datetime, timezone
from typing import Any, Tuple

from pydantic import ValidationError as PydanticValidationError

from errors import NotFoundError, StudyError, UnexpectedError, ValidationError
from llm import (
    ANALYSIS_CONFIG, ARTICLE_CONFIG, TRANSLATION_CONFIG, READING_LANGUAGES,
    GenerationConfig, TextModel,
    deterministic_pronunciation, parse_analysis_json,
)
from log import get_logger, timed
from models import (
    CONTEXT_RADIUS,
    AnalysisResponse, AnalyzeTextRequest, Article, CreateArticleRequest, SpanContext,
)
from prompts import analysis_prompt, article_prompt, topic_translation_prompt
from store import ArticleStore

logger = get_logger("langstudy.articles")


def _parse(model_cls, payload: Any):
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        return model_cls.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(f"Malformed request: {e.error_count()} invalid field(s)") from e


def _require_text(**fields: Any):
    missing = [name for name, value in fields.items() if not isinstance(value, str) or not value.strip()]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


async def _generate(model: TextModel, prompt: str, config: GenerationConfig, step: str) -> str:
    with timed(logger, "Model call", component="llm", detail=step):
        return await model.generate(prompt, config)


def context_window(text: str, start: int, end: int, radius: int = CONTEXT_RADIUS) -> Tuple[str, str]:
    """Up to `radius` characters before `start` and after `end`, clamped to the text."""
    before = text[max(0, start - radius):start]
    after = text[end:min(len(text), end + radius)]
    return before, after


async def translate_topic(model: TextModel, topic: str, source_lang: str, target_lang: str) -> str:
    prompt = topic_translation_prompt(topic, source_lang, target_lang)
    translated = (await _generate(model, prompt, TRANSLATION_CONFIG, "translate_topic")).strip()
    logger.info("Topic translated", extra={"component": "articles", "lang": target_lang, "detail": translated})
    return translated


async def create_article(payload: Any, model: TextModel, store: ArticleStore) -> Article:
    """Translate the topic, generate a study passage and store it as a new article."""
    try:
        req = _parse(CreateArticleRequest, payload)
        _require_text(topic=req.topic, sourceLang=req.sourceLang, targetLang=req.targetLang, uid=req.uid)

        translated_topic = await translate_topic(model, req.topic, req.sourceLang, req.targetLang)
        text = (await _generate(model, article_prompt(translated_topic, req.targetLang),
                                ARTICLE_CONFIG, "generate_article")).strip()
        logger.debug("Generated text", extra={"component": "articles", "detail": text})

        article = Article(
            id=store.new_id(),
            uid=req.uid,
            topic=req.topic,
            sourceLang=req.sourceLang,
            targetLang=req.targetLang,
            text=text,
            createdAt=datetime.now(timezone.utc),
        )
        with timed(logger, "Article saved", component="store", article_id=article.id, count=len(text)):
            store.put(article.id, article.model_dump())
        return article
    except StudyError:
        raise
    except Exception as e:
        raise UnexpectedError(f"Article creation failed: {e}") from e


def fill_readings(analysis: dict, target_lang: str) -> dict:
    """Add a deterministic reading to vocabulary entries the model left without one.

    The model decides the shape of its reply, so anything that is not a list of
    objects with a string `word` is left untouched.
    """
    vocabulary = analysis.get("vocabulary")
    if target_lang not in READING_LANGUAGES or not isinstance(vocabulary, list):
        return analysis
    for entry in vocabulary:
        if isinstance(entry, dict) and isinstance(entry.get("word"), str) and entry["word"].strip() \
                and not entry.get("reading"):
            entry["reading"] = deterministic_pronunciation(entry["word"], target_lang)
    return analysis


async def analyze_text(payload: Any, model: TextModel, store: ArticleStore) -> AnalysisResponse:
    """Explain the selected span of a stored article using its surrounding context."""
    try:
        req = _parse(AnalyzeTextRequest, payload)
        _require_text(articleId=req.articleId)
        # A selection may be only whitespace or punctuation, so just require it to be non-empty.
        if not isinstance(req.selectedText, str) or req.selectedText == "":
            raise ValidationError("Missing required fields: selectedText")
        # Indices can legitimately be 0, so check for presence rather than truthiness.
        if req.startIndex is None or req.endIndex is None:
            raise ValidationError("Missing required fields: startIndex/endIndex")
        if req.startIndex < 0 or req.endIndex < req.startIndex:
            raise ValidationError(f"Invalid span [{req.startIndex}, {req.endIndex})")

        record = store.get_by_id(req.articleId)
        if record is None:
            raise NotFoundError(f"Article {req.articleId} not found")

        text = record["text"]
        before, after = context_window(text, req.startIndex, req.endIndex)
        prompt = analysis_prompt(before, req.selectedText, after, record["sourceLang"], record["targetLang"])
        reply = await _generate(model, prompt, ANALYSIS_CONFIG, "analyze_text")
        logger.debug("Raw analysis response", extra={"component": "articles", "detail": reply})

        analysis = fill_readings(parse_analysis_json(reply), record["targetLang"])
        logger.info("Analysis parsed", extra={"component": "articles", "article_id": req.articleId})

        return AnalysisResponse(
            analysis=analysis,
            context=SpanContext(before=before, selected=req.selectedText, after=after),
        )
    except StudyError:
        raise
    except Exception as e:
        raise UnexpectedError(f"Text analysis failed: {e}") from e
