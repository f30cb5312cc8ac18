"""Command-line interface for StudioForge.

Runs one generation per invocation and saves the result to the output
directory.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import mimetypes
import os
from pathlib import Path
import sys
from typing import Any

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from studioforge.core.api.http.errors import ApiError
from studioforge.core.config.loader import configure_logging, load_app_config
from studioforge.core.config.models import AppConfig
from studioforge.core.studio.assets import ImageAsset
from studioforge.core.studio.credentials import mask_credential
from studioforge.core.studio.errors import StudioError, is_credential_error
from studioforge.core.studio.materializer import GenerationResult, ResultKind
from studioforge.core.studio.requests import (
    GenerationRequest,
    OutfitSwapRequest,
    PosterRequest,
    VideoRequest,
)
from studioforge.core.studio.service import StudioService
from studioforge.core.studio.vocabulary import (
    AppMode,
    AspectRatio,
    PoseType,
    image_ratio_code,
    video_ratio_code,
)

console = Console()
logger = logging.getLogger(__name__)

API_KEY_ENV = "GEMINI_API_KEY"

def save_result(result: GenerationResult, output_dir: Path, stem: str) -> Path:
    """Write a result into ``output_dir`` and release its temporary handle.

    Args:
        result: Generated image or video
        output_dir: Destination directory (created if missing)
        stem: File name without extension

    Returns:
        Path of the written file
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / f"{stem}{mimetypes.guess_extension(result.mime_type) or '.bin'}"
    try:
        path.write_bytes(result.read())
    finally:
        result.release()
    return path


def _load_asset(path: str | None, label: str) -> ImageAsset | None:
    if path is None:
        return None
    asset = ImageAsset.from_path(path)
    logger.debug("Loaded %s from %s (%s)", label, path, asset.mime_type)
    return asset


def build_request(args: argparse.Namespace) -> GenerationRequest:
    """Translate parsed arguments into a generation request.

    Raises:
        AssetValidationError: An input file is missing or not an image
    """
    ratio = AspectRatio(args.ratio) if args.ratio else None
    common: dict[str, Any] = {"credential": args.api_key or ""}
    if ratio is not None:
        common["ratio"] = ratio

    if args.cmd == "outfit":
        return OutfitSwapRequest(
            character=_load_asset(args.character, "character"),
            outfit=_load_asset(args.outfit, "outfit"),
            handheld=_load_asset(args.handheld, "handheld"),
            pose=PoseType(args.pose),
            **common,
        )
    if args.cmd == "poster":
        return PosterRequest(
            product=_load_asset(args.product, "product"),
            theme=args.theme,
            logo=_load_asset(args.logo, "logo"),
            **common,
        )
    return VideoRequest(
        prompt=args.prompt,
        reference=_load_asset(args.reference, "reference"),
        **common,
    )


def print_options() -> int:
    """List poses and aspect ratios with their service codes."""
    poses = Table(title="Poses")
    poses.add_column("Value")
    poses.add_column("Label")
    for pose in PoseType:
        poses.add_row(pose.value, pose.label)
    console.print(poses)

    ratios = Table(title="Aspect Ratios")
    ratios.add_column("Value")
    ratios.add_column("Label")
    ratios.add_column("Image code")
    ratios.add_column("Video code")
    for ratio in AspectRatio:
        ratios.add_row(ratio.value, ratio.label, image_ratio_code(ratio), video_ratio_code(ratio))
    console.print(ratios)

    console.print("\n[bold]Modes:[/bold] " + ", ".join(m.value for m in AppMode))
    return 0


async def run_generation_async(
    request: GenerationRequest,
    config: AppConfig,
    output_dir: Path,
    **service_kwargs: Any,
) -> int:
    """Run one request and save its result.

    Args:
        request: Built generation request
        config: Application configuration
        output_dir: Where to write the result
        **service_kwargs: Passed to ``StudioService.from_config``

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    console.print(f"[green]Using API key[/green] {mask_credential(request.credential)}")
    console.print(f"[bold]Running {request.mode.value.replace('_', ' ')}...[/bold]")
    if isinstance(request, VideoRequest):
        console.print("   Video generation can take a few minutes.")

    try:
        async with StudioService.from_config(config, **service_kwargs) as studio:
            result = await studio.generate(request)
    except (StudioError, ApiError) as e:
        console.print(f"[red]ERROR: {e}[/red]")
        if is_credential_error(e):
            console.print(
                "\nYour API key was rejected. Pass a valid key with --api-key "
                f"or set {API_KEY_ENV} and try again."
            )
        return 1

    stem = "video" if result.kind is ResultKind.VIDEO else request.mode.value
    path = save_result(result, output_dir, stem)
    console.print(f"[green]✅ Saved {result.kind.value}:[/green] {path}")
    if result.description:
        console.print(f"   {result.description}")
    return 0


def run_command(args: argparse.Namespace) -> int:
    """Execute a parsed command and return its exit code."""
    if args.cmd == "options":
        return print_options()

    try:
        config = load_app_config(Path(args.config) if args.config else None)
    except (FileNotFoundError, ValueError, ValidationError) as e:
        console.print(f"[red]ERROR: Could not load config: {e}[/red]")
        return 1

    if args.log_level:
        config = config.model_copy(
            update={"logging": config.logging.model_copy(update={"level": args.log_level})}
        )
    configure_logging(config)

    if not (args.api_key or "").strip():
        console.print("[red]ERROR: No Gemini API key provided[/red]")
        console.print("\nTo run StudioForge:")
        console.print(f"  export {API_KEY_ENV}='your-key-here'")
        console.print("  studioforge poster --product <file> --theme <text>")
        return 1

    try:
        request = build_request(args)
    except StudioError as e:
        console.print(f"[red]ERROR: {e}[/red]")
        return 1

    output_dir = Path(args.out or config.output_dir).resolve()
    return asyncio.run(run_generation_async(request, config, output_dir))


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for CLI."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--api-key",
        default=os.getenv(API_KEY_ENV),
        help=f"Gemini API key (default: ${API_KEY_ENV})",
    )
    common.add_argument("--config", help="Path to app config (.yaml/.json)")
    common.add_argument("--out", help="Output directory (default: from config)")
    common.add_argument(
        "--ratio",
        choices=[r.value for r in AspectRatio],
        help="Aspect ratio (default: 1:1 for images, 16:9 for video)",
    )
    common.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the configured log level",
    )

    p = argparse.ArgumentParser(
        prog="studioforge",
        description="StudioForge - AI outfit swaps, product posters, and videos",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    outfit = sub.add_parser("outfit", parents=[common], help="Swap a character's outfit")
    outfit.add_argument("--character", required=True, help="Character image")
    outfit.add_argument("--outfit", required=True, help="Outfit reference image")
    outfit.add_argument("--handheld", help="Optional product to place in hand")
    outfit.add_argument(
        "--pose",
        choices=[pose.value for pose in PoseType],
        default=PoseType.ORIGINAL.value,
        help="Target pose (default: original)",
    )

    poster = sub.add_parser("poster", parents=[common], help="Create a product poster")
    poster.add_argument("--product", required=True, help="Product image")
    poster.add_argument("--theme", required=True, help="Background theme description")
    poster.add_argument("--logo", help="Optional brand logo image")

    video = sub.add_parser("video", parents=[common], help="Generate a short video")
    video.add_argument("--prompt", required=True, help="What the video should show")
    video.add_argument("--reference", help="Optional reference image")

    sub.add_parser("options", help="List poses and aspect ratios")

    return p


def main(argv: list[str] | None = None) -> None:
    """Main entry point for CLI."""
    p = build_arg_parser()
    args = p.parse_args(argv)
    sys.exit(run_command(args))


if __name__ == "__main__":
    main()
