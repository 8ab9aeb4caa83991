"""Optional remote classifier used as a secondary, low-weight signal.

The engine only depends on the :class:`ExternalClassifier` protocol. :class:`NullClassifier`
is the default and never touches the network; :class:`MistralClassifier` asks a hosted chat
model for a JSON verdict.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Literal, Optional, Protocol, runtime_checkable

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from data_designer_aigard.errors import (
    AuthenticationError,
    ExternalUnavailableError,
    MalformedExternalResponseError,
    RateLimitError,
)

logger = logging.getLogger(__name__)

MISTRAL_API_URL = "https://api.mistral.ai/v1/chat/completions"
DEFAULT_MODEL = "mistral-small-latest"
MAX_EXTERNAL_CHARS = 6000

_JSON_EXTRACT_RE = re.compile(r"\{.*\}", re.DOTALL)

_INSTRUCTIONS = """Expert AI text detector. Analyze STRUCTURE, not content.

RULES:
1. Personal facts, numbers, names and dates do NOT prove human authorship - models generate specific content too
2. Perfect cliches in perfect positions = AI
3. Slang + perfect logical flow = AI pretending to be casual
4. NO FLAWS = likely AI; uniform sentence length and information density = likely AI
5. Bureaucratic phrasing ("резюмируя вышеизложенное", "в рамках", "на основании") = strong AI indicator
6. Self-corrections, tangents, incomplete thoughts = human signals

JSON only: {"label":"HUMAN"/"AI"/"MIXED","confidence":0-1,"ai_probability":0-1,"suspicious_phrases":[],"reasoning":"brief, about structure"}

Text: "%s\""""


class ExternalVerdict(BaseModel):
    """Verdict returned by an external classifier, neutral by default."""

    model_config = ConfigDict(frozen=True)

    label: Literal["HUMAN", "AI", "MIXED"] = "MIXED"
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    ai_probability: float = Field(default=0.5, ge=0.0, le=1.0)
    suspicious_phrases: list[str] = Field(default_factory=list)
    reasoning: str = ""

    @field_validator("label", mode="before")
    @classmethod
    def _upper_label(cls, value: object) -> object:
        return value.strip().upper() if isinstance(value, str) else value

    @classmethod
    def neutral(cls) -> ExternalVerdict:
        return cls()


class ClassifierSettings(BaseModel):
    """Credentials and endpoint for the external classifier."""

    api_key: str = ""
    model: str = DEFAULT_MODEL
    api_url: str = MISTRAL_API_URL
    timeout: float = Field(default=30.0, gt=0)

    @property
    def configured(self) -> bool:
        return bool(self.api_key.strip())

    @classmethod
    def from_env(cls) -> ClassifierSettings:
        return cls(
            api_key=os.environ.get("AIGARD_API_KEY", "").strip(),
            model=os.environ.get("AIGARD_MODEL", "").strip() or DEFAULT_MODEL,
            api_url=os.environ.get("AIGARD_API_URL", "").strip() or MISTRAL_API_URL,
        )


@runtime_checkable
class ExternalClassifier(Protocol):
    """Classify a chunk of text into an :class:`ExternalVerdict`."""

    async def classify(self, text: str) -> ExternalVerdict: ...


class NullClassifier:
    """Always answers with the neutral verdict. Stands in when no classifier is configured."""

    async def classify(self, text: str) -> ExternalVerdict:
        return ExternalVerdict.neutral()


def parse_verdict(content: str) -> ExternalVerdict:
    """Parse a model reply into a verdict, tolerating prose around the JSON object."""
    try:
        return ExternalVerdict.model_validate_json(content)
    except ValidationError as first:
        m = _JSON_EXTRACT_RE.search(content or "")
        if m is None:
            raise MalformedExternalResponseError("External reply is not JSON") from first
        try:
            return ExternalVerdict.model_validate_json(m.group(0))
        except ValidationError as exc:
            raise MalformedExternalResponseError(f"External reply does not match the verdict schema: {exc}") from exc


class MistralClassifier:
    """Chat-completions client asking a hosted model for a structural verdict."""

    def __init__(self, settings: ClassifierSettings, client: Optional[httpx.AsyncClient] = None) -> None:
        self.settings = settings
        self._client = client

    def _payload(self, text: str) -> dict:
        return {
            "model": self.settings.model,
            "messages": [{"role": "user", "content": _INSTRUCTIONS % text[:MAX_EXTERNAL_CHARS]}],
            "temperature": 0.1,
            "max_tokens": 500,
            "response_format": {"type": "json_object"},
        }

    async def classify(self, text: str) -> ExternalVerdict:
        headers = {"Authorization": f"Bearer {self.settings.api_key}", "Content-Type": "application/json"}
        client = self._client
        close_client = False
        if client is None:
            client = httpx.AsyncClient(timeout=self.settings.timeout)
            close_client = True
        try:
            try:
                response = await client.post(self.settings.api_url, headers=headers, json=self._payload(text))
            except httpx.HTTPError as exc:
                raise ExternalUnavailableError(f"External classifier request failed: {exc}") from exc

            if response.status_code == 401:
                raise AuthenticationError("External classifier rejected the API key", 401)
            if response.status_code == 429:
                raise RateLimitError("External classifier rate limit exceeded", 429)
            if not response.is_success:
                raise ExternalUnavailableError(f"External classifier API error {response.status_code}", response.status_code)

            try:
                content = response.json()["choices"][0]["message"]["content"]
                verdict = parse_verdict(content)
            except (ValueError, KeyError, IndexError, TypeError, MalformedExternalResponseError) as exc:
                logger.warning(f"Malformed external classifier reply, using neutral verdict: {exc}")
                return ExternalVerdict.neutral()
            logger.debug(f"External verdict label={verdict.label} ai_probability={verdict.ai_probability}")
            return verdict
        finally:
            if close_client:
                await client.aclose()


def classifier_from_settings(settings: ClassifierSettings, client: Optional[httpx.AsyncClient] = None) -> ExternalClassifier:
    """Build the remote classifier, or the null object when no API key is set."""
    if not settings.configured:
        return NullClassifier()
    return MistralClassifier(settings, client=client)
