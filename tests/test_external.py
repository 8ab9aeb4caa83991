import asyncio
import json

import httpx
import pytest

from data_designer_aigard.errors import (
    AuthenticationError,
    ExternalUnavailableError,
    MalformedExternalResponseError,
    RateLimitError,
)
from data_designer_aigard.external import (
    DEFAULT_MODEL,
    MAX_EXTERNAL_CHARS,
    MISTRAL_API_URL,
    ClassifierSettings,
    ExternalClassifier,
    ExternalVerdict,
    MistralClassifier,
    NullClassifier,
    classifier_from_settings,
    parse_verdict,
)

SETTINGS = ClassifierSettings(api_key="test-key")

VERDICT_JSON = json.dumps({
    "label": "ai",
    "confidence": 0.8,
    "ai_probability": 0.9,
    "suspicious_phrases": ["at the end of the day"],
    "reasoning": "uniform sentence length",
})


def _chat_reply(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _classify(handler, text: str = "Some text to classify.") -> ExternalVerdict:
    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await MistralClassifier(SETTINGS, client=client).classify(text)

    return asyncio.run(run())


class TestParseVerdict:
    def test_plain_json(self):
        verdict = parse_verdict(VERDICT_JSON)
        assert verdict.label == "AI"
        assert verdict.ai_probability == pytest.approx(0.9)
        assert verdict.suspicious_phrases == ["at the end of the day"]

    def test_json_wrapped_in_prose(self):
        verdict = parse_verdict(f"Sure, here is my analysis: {VERDICT_JSON} Hope this helps.")
        assert verdict.label == "AI"
        assert verdict.reasoning == "uniform sentence length"

    def test_not_json(self):
        with pytest.raises(MalformedExternalResponseError):
            parse_verdict("I think this was written by a person.")

    def test_out_of_range_probability(self):
        with pytest.raises(MalformedExternalResponseError):
            parse_verdict('{"label": "AI", "confidence": 0.5, "ai_probability": 1.5}')

    def test_unknown_label(self):
        with pytest.raises(MalformedExternalResponseError):
            parse_verdict('{"label": "ROBOT", "confidence": 0.5, "ai_probability": 0.5}')

    def test_missing_fields_are_neutral(self):
        verdict = parse_verdict("{}")
        assert verdict == ExternalVerdict.neutral()


class TestMistralClassifier:
    def test_successful_classification(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert str(request.url) == MISTRAL_API_URL
            assert request.headers["Authorization"] == "Bearer test-key"
            body = json.loads(request.content)
            assert body["model"] == DEFAULT_MODEL
            assert body["response_format"] == {"type": "json_object"}
            assert "Some text to classify." in body["messages"][0]["content"]
            return httpx.Response(200, json=_chat_reply(VERDICT_JSON))

        verdict = _classify(handler)
        assert verdict.label == "AI"
        assert verdict.confidence == pytest.approx(0.8)

    def test_text_is_truncated(self):
        def handler(request: httpx.Request) -> httpx.Response:
            content = json.loads(request.content)["messages"][0]["content"]
            assert "x" * MAX_EXTERNAL_CHARS in content
            assert "x" * (MAX_EXTERNAL_CHARS + 1) not in content
            return httpx.Response(200, json=_chat_reply(VERDICT_JSON))

        _classify(handler, "x" * (MAX_EXTERNAL_CHARS + 500))

    def test_bad_key(self):
        with pytest.raises(AuthenticationError) as exc_info:
            _classify(lambda request: httpx.Response(401, json={"message": "Unauthorized"}))
        assert exc_info.value.status_code == 401

    def test_rate_limited(self):
        with pytest.raises(RateLimitError) as exc_info:
            _classify(lambda request: httpx.Response(429, json={"message": "Too many requests"}))
        assert exc_info.value.status_code == 429

    def test_server_error(self):
        with pytest.raises(ExternalUnavailableError) as exc_info:
            _classify(lambda request: httpx.Response(500, text="boom"))
        assert exc_info.value.status_code == 500
        assert not isinstance(exc_info.value, (AuthenticationError, RateLimitError))

    def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ExternalUnavailableError) as exc_info:
            _classify(handler)
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    def test_malformed_content_is_neutral(self):
        verdict = _classify(lambda request: httpx.Response(200, json=_chat_reply("no idea, sorry")))
        assert verdict == ExternalVerdict.neutral()

    def test_unexpected_envelope_is_neutral(self):
        verdict = _classify(lambda request: httpx.Response(200, json={"choices": []}))
        assert verdict == ExternalVerdict.neutral()


class TestSettings:
    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("AIGARD_API_KEY", "  secret  ")
        monkeypatch.setenv("AIGARD_MODEL", "mistral-large-latest")
        monkeypatch.delenv("AIGARD_API_URL", raising=False)
        settings = ClassifierSettings.from_env()
        assert settings.configured
        assert settings.api_key == "secret"
        assert settings.model == "mistral-large-latest"
        assert settings.api_url == MISTRAL_API_URL

    def test_from_env_without_key(self, monkeypatch):
        monkeypatch.delenv("AIGARD_API_KEY", raising=False)
        monkeypatch.delenv("AIGARD_MODEL", raising=False)
        settings = ClassifierSettings.from_env()
        assert not settings.configured
        assert settings.model == DEFAULT_MODEL

    def test_classifier_from_settings(self):
        assert isinstance(classifier_from_settings(ClassifierSettings()), NullClassifier)
        classifier = classifier_from_settings(SETTINGS)
        assert isinstance(classifier, MistralClassifier)
        assert isinstance(classifier, ExternalClassifier)

    def test_null_classifier(self):
        verdict = asyncio.run(NullClassifier().classify("anything"))
        assert verdict.label == "MIXED"
        assert verdict.ai_probability == 0.5
        assert verdict.confidence == 0.5
