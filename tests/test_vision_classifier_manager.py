import asyncio
from types import SimpleNamespace

import pytest
from openai import OpenAIError

from com.furia.app.config.config import Config
from com.furia.app.exceptions.exceptions import ClassifierUnavailable
from com.furia.app.services.verification_system.api_manager.vision_classifier_manager import VisionClassifierManager
from com.furia.app.services.verification_system.identity_verification.identity_verification_schema import ImagePayload

IMAGES = [
    ImagePayload(mime_type="image/png", data="aWQ="),
    ImagePayload(mime_type="image/jpeg", data="c2VsZmll"),
]


class FakeCompletions:
    def __init__(self, content='{"match": true}', delay=0.0, error=None):
        self.content = content
        self.delay = delay
        self.error = error
        self.requests = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        choices = [] if self.content is None else [SimpleNamespace(message=SimpleNamespace(content=self.content))]
        return SimpleNamespace(choices=choices)


def _manager(completions):
    return VisionClassifierManager(client=SimpleNamespace(chat=SimpleNamespace(completions=completions)))


def test_classify_sends_prompt_and_inline_images():
    completions = FakeCompletions(content='  {"match": true, "confidence": 0.9}  ')

    raw = asyncio.run(_manager(completions).classify("compare these", IMAGES))

    assert raw == '{"match": true, "confidence": 0.9}'
    request = completions.requests[0]
    assert request["response_format"] == {"type": "json_object"}
    user_content = request["messages"][-1]["content"]
    assert user_content[0] == {"type": "text", "text": "compare these"}
    assert user_content[1]["image_url"]["url"] == "data:image/png;base64,aWQ="
    assert user_content[2]["image_url"]["url"] == "data:image/jpeg;base64,c2VsZmll"


def test_classify_timeout_is_unavailable():
    manager = _manager(FakeCompletions(delay=1.0))
    manager.timeout = 0.01

    with pytest.raises(ClassifierUnavailable) as exc_info:
        asyncio.run(manager.classify("compare these", IMAGES))

    assert exc_info.value.status_code == 503
    assert exc_info.value.retryable is True


def test_classify_api_error_is_unavailable():
    manager = _manager(FakeCompletions(error=OpenAIError("rate limited")))

    with pytest.raises(ClassifierUnavailable) as exc_info:
        asyncio.run(manager.classify("compare these", IMAGES))

    assert "rate limited" in exc_info.value.detail


def test_classify_empty_response_is_unavailable():
    with pytest.raises(ClassifierUnavailable):
        asyncio.run(_manager(FakeCompletions(content=None)).classify("compare these", IMAGES))


def test_missing_api_key_is_unavailable(monkeypatch):
    monkeypatch.setattr(Config(), "openai_api_key", None)

    with pytest.raises(ClassifierUnavailable):
        asyncio.run(VisionClassifierManager().classify("compare these", IMAGES))
