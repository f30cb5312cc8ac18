"""Unit tests for the studioforge CLI."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from studioforge.cli.main import (
    build_arg_parser,
    build_request,
    main,
    run_command,
    run_generation_async,
    save_result,
)
from studioforge.core.config.models import AppConfig
from studioforge.core.studio.assets import LocalResource
from studioforge.core.studio.materializer import GenerationResult, ResultKind
from studioforge.core.studio.requests import OutfitSwapRequest, PosterRequest, VideoRequest
from studioforge.core.studio.vocabulary import AspectRatio, PoseType

IMAGE_RESPONSE = {
    "candidates": [
        {
            "content": {
                "parts": [{"inlineData": {"mimeType": "image/png", "data": "iVBORw0KGgo="}}]
            }
        }
    ]
}


class TestArgParser:
    def test_outfit_arguments(self, png_file: Path) -> None:
        args = build_arg_parser().parse_args(
            [
                "outfit",
                "--character",
                str(png_file),
                "--outfit",
                str(png_file),
                "--pose",
                "pose_walking",
                "--ratio",
                "ratio_4_5",
                "--api-key",
                "k",
            ]
        )

        request = build_request(args)

        assert isinstance(request, OutfitSwapRequest)
        assert request.pose is PoseType.WALKING
        assert request.ratio is AspectRatio.RATIO_4_5
        assert request.credential == "k"
        assert request.handheld is None

    def test_api_key_defaults_to_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("GEMINI_API_KEY", "from-env")
        args = build_arg_parser().parse_args(["video", "--prompt", "waves"])

        request = build_request(args)

        assert isinstance(request, VideoRequest)
        assert request.credential == "from-env"
        assert request.ratio is AspectRatio.RATIO_16_9

    def test_poster_request(self, png_file: Path) -> None:
        args = build_arg_parser().parse_args(
            ["poster", "--product", str(png_file), "--theme", "neon city", "--api-key", "k"]
        )

        request = build_request(args)

        assert isinstance(request, PosterRequest)
        assert request.theme == "neon city"
        assert request.ratio is AspectRatio.RATIO_1_1

    def test_invalid_pose_rejected(self) -> None:
        with pytest.raises(SystemExit):
            build_arg_parser().parse_args(
                ["outfit", "--character", "a.png", "--outfit", "b.png", "--pose", "dab"]
            )


def test_options_lists_vocabulary(capsys) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["options"])

    assert exc_info.value.code == 0
    out = capsys.readouterr().out
    assert "pose_contrapposto" in out
    assert "ratio_3_2" in out


def test_missing_api_key(monkeypatch, tmp_path: Path, capsys) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.chdir(tmp_path)
    args = build_arg_parser().parse_args(["video", "--prompt", "waves"])

    assert run_command(args) == 1
    assert "No Gemini API key provided" in capsys.readouterr().out


def test_non_image_input(monkeypatch, tmp_path: Path, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    text_file = tmp_path / "notes.txt"
    text_file.write_text("hi")
    args = build_arg_parser().parse_args(
        ["poster", "--product", str(text_file), "--theme", "x", "--api-key", "k"]
    )

    assert run_command(args) == 1
    assert "please upload an image" in capsys.readouterr().out


def test_save_image_result(tmp_path: Path) -> None:
    result = GenerationResult(
        kind=ResultKind.IMAGE,
        uri="data:image/png;base64,iVBORw0KGgo=",
        mime_type="image/png",
    )

    path = save_result(result, tmp_path / "out", "poster")

    assert path == tmp_path / "out" / "poster.png"
    assert path.read_bytes().startswith(b"\x89PNG")


def test_save_video_result_releases_resource(tmp_path: Path) -> None:
    resource = LocalResource.from_bytes(b"mp4", "video/mp4")
    result = GenerationResult(
        kind=ResultKind.VIDEO, uri=resource.uri, mime_type="video/mp4", resource=resource
    )

    path = save_result(result, tmp_path, "video")

    assert path.read_bytes() == b"mp4"
    assert path.suffix == ".mp4"
    assert resource.released


def test_save_result_extension_from_mime_type(tmp_path: Path) -> None:
    jpeg = GenerationResult(
        kind=ResultKind.IMAGE, uri="data:image/jpeg;base64,/9j/4AA=", mime_type="image/jpeg"
    )
    assert save_result(jpeg, tmp_path, "poster").name == "poster.jpg"

    unknown = LocalResource.from_bytes(b"raw", "application/x-studioforge")
    result = GenerationResult(
        kind=ResultKind.VIDEO,
        uri=unknown.uri,
        mime_type="application/x-studioforge",
        resource=unknown,
    )
    assert save_result(result, tmp_path, "video").name == "video.bin"


class TestRunGeneration:
    @pytest.mark.asyncio
    async def test_saves_image(self, product, api_key, sleep, tmp_path: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=IMAGE_RESPONSE)

        request = PosterRequest(product=product, theme="beach", credential=api_key)

        code = await run_generation_async(
            request,
            AppConfig(),
            tmp_path,
            transport=httpx.MockTransport(handler),
            sleep=sleep,
        )

        assert code == 0
        assert (tmp_path / "product_poster.png").exists()

    @pytest.mark.asyncio
    async def test_rejected_key_prints_hint(
        self, product, api_key, sleep, tmp_path: Path, capsys
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                400,
                json={
                    "error": {
                        "code": 400,
                        "message": "API key not valid.",
                        "status": "INVALID_ARGUMENT",
                    }
                },
            )

        request = PosterRequest(product=product, theme="beach", credential=api_key)

        code = await run_generation_async(
            request,
            AppConfig(),
            tmp_path,
            transport=httpx.MockTransport(handler),
            sleep=sleep,
        )

        assert code == 1
        out = capsys.readouterr().out
        assert "API key was rejected" in out
        assert api_key not in out
