"""End-to-end tests for StudioService over a mocked Gemini transport."""

from __future__ import annotations

import json

import httpx
import pytest

from studioforge.core.api.http.errors import AuthError, ClientError
from studioforge.core.config.models import AppConfig
from studioforge.core.studio.errors import (
    NoImageReturnedError,
    RequestValidationError,
    ServiceBusyError,
    VideoDownloadError,
    is_credential_error,
)
from studioforge.core.studio.materializer import ResultKind
from studioforge.core.studio.requests import OutfitSwapRequest, PosterRequest, VideoRequest
from studioforge.core.studio.service import StudioService
from studioforge.core.studio.vocabulary import AspectRatio, PoseType

BASE = "https://generativelanguage.googleapis.com/v1beta"
OPERATION = "models/veo-3.1-fast-generate-preview/operations/op123"
VIDEO_URI = f"{BASE}/files/vid123:download?alt=media"

IMAGE_RESPONSE = {
    "candidates": [
        {
            "content": {
                "role": "model",
                "parts": [{"inlineData": {"mimeType": "image/png", "data": "iVBORw0KGgo="}}],
            }
        }
    ]
}

QUOTA_ERROR = {
    "error": {
        "code": 429,
        "message": "Quota exceeded for aiplatform.googleapis.com/generate_content_requests",
        "status": "RESOURCE_EXHAUSTED",
    }
}


class GeminiStub:
    """Scripted Gemini endpoint for httpx.MockTransport."""

    def __init__(self, responses: dict[str, list[httpx.Response]]) -> None:
        self.responses = responses
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        for suffix, queue in self.responses.items():
            if path.endswith(suffix):
                scripted = queue.pop(0) if len(queue) > 1 else queue[0]
                # Fresh copy so the last response can be replayed
                return httpx.Response(
                    scripted.status_code, headers=scripted.headers, content=scripted.content
                )
        return httpx.Response(404, json={"error": {"code": 404, "message": "Not found"}})

    def calls(self, suffix: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(suffix)]


def _json(status: int, body: dict) -> httpx.Response:
    return httpx.Response(status, json=body)


def _service(stub: GeminiStub, sleep) -> StudioService:
    return StudioService.from_config(
        AppConfig(), transport=httpx.MockTransport(stub), sleep=sleep
    )


class TestSwapOutfit:
    @pytest.mark.asyncio
    async def test_retries_quota_then_succeeds(self, character, outfit, api_key, sleep) -> None:
        stub = GeminiStub(
            {
                ":generateContent": [
                    _json(429, QUOTA_ERROR),
                    _json(429, QUOTA_ERROR),
                    _json(200, IMAGE_RESPONSE),
                ]
            }
        )
        request = OutfitSwapRequest(
            character=character,
            outfit=outfit,
            pose=PoseType.CONTRAPPOSTO,
            ratio=AspectRatio.RATIO_1_1,
            credential=api_key,
        )

        async with _service(stub, sleep) as studio:
            result = await studio.generate(request)

        assert result.kind is ResultKind.IMAGE
        assert result.uri == "data:image/png;base64,iVBORw0KGgo="
        calls = stub.calls(":generateContent")
        assert len(calls) == 3
        assert sleep.delays == [2.0, 3.0]

        sent = calls[-1]
        assert sent.url.path == "/v1beta/models/gemini-2.5-flash-image:generateContent"
        assert sent.headers["x-goog-api-key"] == api_key
        body = json.loads(sent.content)
        parts = body["contents"][0]["parts"]
        assert len(parts) == 3
        assert "CHANGE the character's pose to:" in parts[0]["text"]
        assert "contrapposto" in parts[0]["text"]
        assert body["generationConfig"]["imageConfig"]["aspectRatio"] == "1:1"

    @pytest.mark.asyncio
    async def test_missing_outfit_makes_no_call(self, character, api_key, sleep) -> None:
        stub = GeminiStub({":generateContent": [_json(200, IMAGE_RESPONSE)]})

        async with _service(stub, sleep) as studio:
            with pytest.raises(RequestValidationError):
                await studio.swap_outfit(OutfitSwapRequest(character=character, credential=api_key))

        assert stub.requests == []

    @pytest.mark.asyncio
    async def test_default_pose_square(self, character, outfit, api_key, sleep) -> None:
        stub = GeminiStub({":generateContent": [_json(200, IMAGE_RESPONSE)]})
        request = OutfitSwapRequest(character=character, outfit=outfit, credential=api_key)

        async with _service(stub, sleep) as studio:
            result = await studio.swap_outfit(request)

        assert result.kind is ResultKind.IMAGE
        calls = stub.calls(":generateContent")
        assert len(calls) == 1
        body = json.loads(calls[0].content)
        parts = body["contents"][0]["parts"]
        assert len(parts) == 3
        assert "CHANGE the character's pose" not in parts[0]["text"]
        assert body["generationConfig"]["imageConfig"]["aspectRatio"] == "1:1"
        assert sleep.delays == []


class TestGeneratePoster:
    @pytest.mark.asyncio
    async def test_persistent_overload_gives_busy_message(
        self, product, api_key, sleep
    ) -> None:
        overloaded = {
            "error": {"code": 503, "message": "The model is overloaded.", "status": "UNAVAILABLE"}
        }
        stub = GeminiStub({":generateContent": [_json(503, overloaded)]})
        request = PosterRequest(product=product, theme="beach", credential=api_key)

        async with _service(stub, sleep) as studio:
            with pytest.raises(ServiceBusyError) as exc_info:
                await studio.generate_poster(request)

        assert "Server is currently busy or daily quota reached" in str(exc_info.value)
        assert len(stub.calls(":generateContent")) == 3

    @pytest.mark.asyncio
    async def test_invalid_key_is_credential_error(self, product, api_key, sleep) -> None:
        invalid = {
            "error": {
                "code": 400,
                "message": "API key not valid. Please pass a valid API key.",
                "status": "INVALID_ARGUMENT",
            }
        }
        stub = GeminiStub({":generateContent": [_json(400, invalid)]})
        request = PosterRequest(product=product, theme="beach", credential=api_key)

        async with _service(stub, sleep) as studio:
            with pytest.raises(ClientError) as exc_info:
                await studio.generate_poster(request)

        assert is_credential_error(exc_info.value)
        assert len(stub.calls(":generateContent")) == 1

    @pytest.mark.asyncio
    async def test_forbidden(self, product, api_key, sleep) -> None:
        stub = GeminiStub({":generateContent": [_json(403, {"error": {"code": 403}})]})
        request = PosterRequest(product=product, theme="beach", credential=api_key)

        async with _service(stub, sleep) as studio:
            with pytest.raises(AuthError):
                await studio.generate_poster(request)

    @pytest.mark.asyncio
    async def test_empty_parts_no_image(self, product, api_key, sleep) -> None:
        empty = {"candidates": [{"content": {"role": "model", "parts": []}}]}
        stub = GeminiStub({":generateContent": [_json(200, empty)]})
        request = PosterRequest(
            product=product,
            theme="marble podium",
            ratio=AspectRatio.RATIO_16_9,
            credential=api_key,
        )

        async with _service(stub, sleep) as studio:
            with pytest.raises(NoImageReturnedError, match="No image generated."):
                await studio.generate_poster(request)

        calls = stub.calls(":generateContent")
        assert len(calls) == 1
        body = json.loads(calls[0].content)
        assert len(body["contents"][0]["parts"]) == 2
        assert body["generationConfig"]["imageConfig"]["aspectRatio"] == "16:9"
        assert sleep.delays == []


class TestGenerateVideo:
    def _stub(self, download: httpx.Response) -> GeminiStub:
        return GeminiStub(
            {
                ":predictLongRunning": [_json(200, {"name": OPERATION})],
                "/operations/op123": [
                    _json(200, {"name": OPERATION, "done": False}),
                    _json(
                        200,
                        {
                            "name": OPERATION,
                            "done": True,
                            "response": {
                                "generateVideoResponse": {
                                    "generatedSamples": [{"video": {"uri": VIDEO_URI}}]
                                }
                            },
                        },
                    ),
                ],
                "/files/vid123:download": [download],
            }
        )

    @pytest.mark.asyncio
    async def test_full_job(self, api_key, sleep) -> None:
        stub = self._stub(httpx.Response(200, content=b"mp4-bytes"))
        request = VideoRequest(prompt="A cat surfing", credential=api_key)

        async with _service(stub, sleep) as studio:
            result = await studio.generate(request)

        try:
            assert result.kind is ResultKind.VIDEO
            assert result.read() == b"mp4-bytes"
        finally:
            result.release()

        assert len(stub.calls("/operations/op123")) == 2
        assert sleep.delays == [5.0, 5.0]

        download = stub.calls("/files/vid123:download")[0]
        assert download.url.params["key"] == api_key
        assert download.url.params["alt"] == "media"

        submit = json.loads(stub.calls(":predictLongRunning")[0].content)
        assert submit["parameters"]["aspectRatio"] == "16:9"
        assert submit["parameters"]["resolution"] == "720p"

    @pytest.mark.asyncio
    async def test_download_not_found(self, api_key, sleep) -> None:
        stub = self._stub(httpx.Response(404, text="gone"))
        request = VideoRequest(prompt="A cat surfing", credential=api_key)

        async with _service(stub, sleep) as studio:
            with pytest.raises(VideoDownloadError, match="Failed to download video: Not Found"):
                await studio.generate_video(request)

    @pytest.mark.asyncio
    async def test_finished_submission_download_not_found(self, api_key, sleep) -> None:
        finished = {
            "name": OPERATION,
            "done": True,
            "response": {
                "generateVideoResponse": {"generatedSamples": [{"video": {"uri": VIDEO_URI}}]}
            },
        }
        stub = GeminiStub(
            {
                ":predictLongRunning": [_json(200, finished)],
                "/files/vid123:download": [httpx.Response(404, text="gone")],
            }
        )
        request = VideoRequest(
            prompt="dog running", ratio=AspectRatio.RATIO_9_16, credential=api_key
        )

        async with _service(stub, sleep) as studio:
            with pytest.raises(VideoDownloadError, match="Failed to download video: Not Found"):
                await studio.generate_video(request)

        assert stub.calls("/operations/op123") == []
        assert sleep.delays == []
        submit = json.loads(stub.calls(":predictLongRunning")[0].content)
        assert submit["parameters"]["aspectRatio"] == "9:16"
        assert submit["instances"][0]["prompt"].startswith("dog running")

    @pytest.mark.asyncio
    async def test_blank_prompt_makes_no_call(self, api_key, sleep) -> None:
        stub = self._stub(httpx.Response(200, content=b""))

        async with _service(stub, sleep) as studio:
            with pytest.raises(RequestValidationError):
                await studio.generate(VideoRequest(prompt="  ", credential=api_key))

        assert stub.requests == []


@pytest.mark.asyncio
async def test_generate_rejects_unknown_request(sleep) -> None:
    stub = GeminiStub({})
    async with _service(stub, sleep) as studio:
        with pytest.raises(TypeError):
            await studio.generate(object())
