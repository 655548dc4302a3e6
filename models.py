"""Pydantic schemas and constants for LangStudy."""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel

# --- Constants ---
SUPPORTED_LANGUAGES = {
    "ja": "Japanese",
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "ko": "Korean",
    "zh": "Chinese",
}

CONTEXT_RADIUS = 100


def language_name(code: str) -> str:
    """Display name for a language code, or the code itself when unknown."""
    return SUPPORTED_LANGUAGES.get(code, code)


# --- Requests ---
# Every field is optional at parse time: presence is checked by the handlers
# so that a missing field is reported as our ValidationError.

class CreateArticleRequest(BaseModel):
    topic: Optional[str] = None
    sourceLang: Optional[str] = None
    targetLang: Optional[str] = None
    uid: Optional[str] = None


class AnalyzeTextRequest(BaseModel):
    articleId: Optional[str] = None
    selectedText: Optional[str] = None
    startIndex: Optional[int] = None
    endIndex: Optional[int] = None


# --- Stored records ---

class Article(BaseModel):
    id: str
    uid: str
    topic: str
    sourceLang: str
    targetLang: str
    text: str
    translation: Optional[str] = None
    createdAt: datetime


# --- Analysis ---
# The parsed model reply, returned as-is. The model decides what it contains
# (vocabulary, grammar, contextAnalysis, notes, exercises), so no key or type
# is guaranteed.
AnalysisResult = Dict[str, Any]


class SpanContext(BaseModel):
    before: str
    selected: str
    after: str


class AnalysisResponse(BaseModel):
    analysis: AnalysisResult
    context: SpanContext
