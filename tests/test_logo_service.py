import asyncio
import base64
from types import SimpleNamespace

import pytest

from core.errors import LogoGenerationError
from infrastructure.logo_service import (
    MISSING_KEY_MESSAGE,
    NO_IMAGE_MESSAGE,
    LogoService,
    build_prompt,
)

PNG = b"\x89PNG\r\n\x1a\nfake"


def _response(*parts):
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts)))])


class FakeModels:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


def _client(models):
    return SimpleNamespace(aio=SimpleNamespace(models=models))


def test_generate_returns_png_data_url():
    models = FakeModels(
        _response(
            SimpleNamespace(text="Here is your logo", inline_data=None),
            SimpleNamespace(inline_data=SimpleNamespace(data=PNG, mime_type="image/png")),
        )
    )
    service = LogoService(client=_client(models), model="image-model")

    url = asyncio.run(service.generate("a red fox"))

    assert url == "data:image/png;base64," + base64.b64encode(PNG).decode("ascii")
    call = models.calls[0]
    assert call["model"] == "image-model"
    assert '"a red fox"' in call["contents"]
    assert call["config"].image_config.aspect_ratio == "1:1"


def test_base64_text_payloads_are_decoded():
    encoded = base64.b64encode(PNG).decode("ascii")
    models = FakeModels(_response(SimpleNamespace(inline_data=SimpleNamespace(data=encoded))))
    url = asyncio.run(LogoService(client=_client(models)).generate("logo"))
    assert url.endswith(encoded)


def test_missing_api_key():
    with pytest.raises(LogoGenerationError) as info:
        asyncio.run(LogoService(api_key=None).generate("logo"))
    assert str(info.value) == MISSING_KEY_MESSAGE


def test_from_environment_reads_key(monkeypatch):
    monkeypatch.delenv("MARKMASTER_TEST_KEY", raising=False)
    with pytest.raises(LogoGenerationError):
        asyncio.run(LogoService.from_environment("MARKMASTER_TEST_KEY").generate("logo"))


def test_response_without_image():
    models = FakeModels(_response(SimpleNamespace(text="sorry", inline_data=None)))
    with pytest.raises(LogoGenerationError) as info:
        asyncio.run(LogoService(client=_client(models)).generate("logo"))
    assert str(info.value) == NO_IMAGE_MESSAGE

    models = FakeModels(SimpleNamespace(candidates=[]))
    with pytest.raises(LogoGenerationError):
        asyncio.run(LogoService(client=_client(models)).generate("logo"))


def test_service_error_message_is_kept():
    models = FakeModels(error=RuntimeError("429 RESOURCE_EXHAUSTED: quota exceeded"))
    with pytest.raises(LogoGenerationError) as info:
        asyncio.run(LogoService(client=_client(models)).generate("logo"))
    assert str(info.value) == "429 RESOURCE_EXHAUSTED: quota exceeded"


def test_blank_prompt_is_rejected():
    models = FakeModels(_response())
    with pytest.raises(ValueError):
        asyncio.run(LogoService(client=_client(models)).generate("   "))
    assert models.calls == []


def test_build_prompt_embeds_description():
    prompt = build_prompt("  mountain peak  ")
    assert '"mountain peak"' in prompt
    assert "watermark" in prompt
