"""LLM interaction (Gemini / Ollama), reply post-processing and pronunciation."""
import os
import json
import re as _re
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx
import pykakasi
from pypinyin import pinyin, Style as PinyinStyle
from korean_romanizer.romanizer import Romanizer

from errors import ResponseParseError, UpstreamError, UpstreamResponseShapeError
from log import get_logger

logger = get_logger("langstudy.llm")

# --- Config ---
LLM_BACKEND = os.environ.get("LANGSTUDY_LLM_BACKEND", "gemini")
GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY", "")
GEMINI_MODEL = os.environ.get("LANGSTUDY_GEMINI_MODEL", "gemini-2.0-flash")
GEMINI_URL = os.environ.get("LANGSTUDY_GEMINI_URL", "https://generativelanguage.googleapis.com/v1beta")
OLLAMA_URL = os.environ.get("LANGSTUDY_OLLAMA_URL", "http://localhost:11434")
OLLAMA_MODEL = os.environ.get("LANGSTUDY_OLLAMA_MODEL", "qwen2.5:14b-instruct-q3_K_M")
LLM_TIMEOUT = float(os.environ.get("LANGSTUDY_LLM_TIMEOUT", "120"))


@dataclass(frozen=True)
class GenerationConfig:
    temperature: float
    max_output_tokens: int


TRANSLATION_CONFIG = GenerationConfig(temperature=0.1, max_output_tokens=256)
ARTICLE_CONFIG = GenerationConfig(temperature=0.9, max_output_tokens=2048)
ANALYSIS_CONFIG = GenerationConfig(temperature=0.9, max_output_tokens=2048)


class TextModel(Protocol):
    name: str

    async def generate(self, prompt: str, config: GenerationConfig) -> str: ...

    async def ping(self) -> bool: ...


def candidate_text(payload) -> str:
    """Pull candidates[0].content.parts[0].text out of a generateContent reply."""
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        raise UpstreamResponseShapeError("Model reply has no candidate text")
    if not isinstance(text, str) or not text.strip():
        raise UpstreamResponseShapeError("Model reply candidate text is empty")
    return text


class GeminiModel:
    """Gemini generateContent over REST."""

    backend = "gemini"

    def __init__(self, api_key: str = GEMINI_API_KEY, model: str = GEMINI_MODEL,
                 base_url: str = GEMINI_URL, timeout: float = LLM_TIMEOUT,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key
        self.name = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            headers={"x-goog-api-key": self.api_key},
        )

    async def generate(self, prompt: str, config: GenerationConfig) -> str:
        body = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": config.temperature,
                "maxOutputTokens": config.max_output_tokens,
            },
        }
        try:
            async with self._client() as client:
                resp = await client.post(f"{self.base_url}/models/{self.name}:generateContent", json=body)
        except httpx.HTTPError as e:
            raise UpstreamError(f"Gemini request failed: {e}") from e
        if resp.status_code != 200:
            raise UpstreamError(f"Gemini returned HTTP {resp.status_code}")
        try:
            payload = resp.json()
        except ValueError:
            raise UpstreamResponseShapeError("Gemini reply is not JSON")
        return candidate_text(payload)

    async def ping(self) -> bool:
        try:
            async with self._client() as client:
                resp = await client.get(f"{self.base_url}/models/{self.name}")
                return resp.status_code == 200
        except httpx.HTTPError:
            logger.warning("Gemini not reachable", extra={"component": "gemini"})
            return False


class OllamaModel:
    """Local Ollama chat API."""

    backend = "ollama"

    def __init__(self, url: str = OLLAMA_URL, model: str = OLLAMA_MODEL,
                 timeout: float = LLM_TIMEOUT,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url.rstrip("/")
        self.name = model
        self.timeout = timeout
        self._transport = transport

    async def generate(self, prompt: str, config: GenerationConfig) -> str:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(
                    f"{self.url}/api/chat",
                    json={
                        "model": self.name,
                        "messages": [{"role": "user", "content": prompt}],
                        "stream": False,
                        "options": {"temperature": config.temperature, "num_predict": config.max_output_tokens},
                    },
                )
        except httpx.HTTPError as e:
            raise UpstreamError(f"Ollama request failed: {e}") from e
        if resp.status_code != 200:
            raise UpstreamError(f"Ollama returned HTTP {resp.status_code}")
        try:
            text = resp.json().get("message", {}).get("content")
        except (ValueError, AttributeError):
            raise UpstreamResponseShapeError("Ollama reply has no message content")
        if not isinstance(text, str) or not text.strip():
            raise UpstreamResponseShapeError("Ollama reply has no message content")
        return text

    async def ping(self) -> bool:
        try:
            async with httpx.AsyncClient(timeout=10, transport=self._transport) as client:
                resp = await client.get(f"{self.url}/api/tags")
                return resp.status_code == 200
        except httpx.HTTPError:
            logger.warning("Ollama not reachable", extra={"component": "ollama"})
            return False


def default_model() -> TextModel:
    if LLM_BACKEND == "ollama":
        return OllamaModel()
    if LLM_BACKEND != "gemini":
        raise ValueError(f"Unknown LANGSTUDY_LLM_BACKEND: {LLM_BACKEND}")
    if not GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY is not set", extra={"component": "gemini"})
    return GeminiModel()


# --- Reply post-processing ---

_FENCE_OPEN = _re.compile(r"^```(?:json)?[ \t]*\n")
_FENCE_CLOSE = _re.compile(r"\n?```$")


def strip_code_fence(text: str) -> str:
    """Remove a ```json ... ``` wrapper around a model reply, if there is one."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_OPEN.sub("", cleaned, count=1)
        cleaned = _FENCE_CLOSE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_analysis_json(text: str) -> dict:
    """Parse the analysis JSON object out of a model reply."""
    cleaned = strip_code_fence(text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        match = _re.search(r'\{.*\}', cleaned, _re.DOTALL)
        if not match:
            raise ResponseParseError("Analysis reply is not JSON")
        try:
            parsed = json.loads(match.group())
        except json.JSONDecodeError as e:
            raise ResponseParseError(f"Analysis reply is not JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise ResponseParseError(f"Analysis reply is a JSON {type(parsed).__name__}, not an object")
    return parsed


# --- Pronunciation ---
_kakasi = pykakasi.kakasi()

READING_LANGUAGES = {"ja", "zh", "ko"}


def deterministic_pronunciation(text: str, lang_code: str) -> Optional[str]:
    """Generate deterministic pronunciation for supported languages."""
    if lang_code == "ja":
        result = _kakasi.convert(text)
        return " ".join(item["hepburn"] for item in result if item["hepburn"].strip())
    elif lang_code == "zh":
        result = pinyin(text, style=PinyinStyle.TONE)
        return " ".join(p[0] for p in result)
    elif lang_code == "ko":
        return Romanizer(text).romanize()
    return None
