"""Command-line access to the single-shot completion endpoint.

Subcommands:
    ask            Send a prompt and print the reply.
    generate-csv   Generate CSV from a prompt and write it to a file.
    review-image   Describe a local image file.

Run: `python cli.py ask "Describe this model's capabilities."`. The same
environment variables as the server (see `utils.settings`) select the backend
and models.
"""
import argparse
import asyncio
import base64
import sys
from pathlib import Path
from typing import List, Optional

import aiofiles
from dotenv import load_dotenv

from services.csv_generator import CsvGenerator
from services.inference.factory import build_inference_client
from utils.errors import OrchestratorError
from utils.media_validation import ensure_base64_image
from utils.settings import Settings

DEFAULT_ASK_PROMPT = "Describe this model's capabilities."
DEFAULT_CSV_PROMPT = "Generate a CSV of 5 fictional employees with name, age, department, and salary."
DEFAULT_REVIEW_PROMPT = "Describe what you see in this image."


async def _ask(settings: Settings, prompt: str) -> None:
    client = build_inference_client(settings)
    try:
        reply = await client.complete(settings.default_model, prompt)
    finally:
        await client.aclose()
    print(reply)


async def _generate_csv(settings: Settings, prompt: str, output: Path) -> None:
    """Generate CSV content and write it to `output`, creating its directory."""
    client = build_inference_client(settings)
    try:
        result = await CsvGenerator(client, settings.default_model).generate(prompt)
    finally:
        await client.aclose()

    output.parent.mkdir(parents=True, exist_ok=True)
    async with aiofiles.open(output, "w", encoding="utf-8") as f:
        await f.write(result.content)

    print(f"CSV generated and saved to: {output}")
    print("\nPreview:\n")
    print(result.content)


async def _review_image(settings: Settings, image_path: Path, prompt: str) -> None:
    async with aiofiles.open(image_path, "rb") as f:
        raw = await f.read()
    image_b64 = ensure_base64_image(base64.b64encode(raw).decode("ascii"))

    client = build_inference_client(settings)
    try:
        reply = await client.complete(settings.multimodal_model, prompt, [image_b64])
    finally:
        await client.aclose()
    print(reply)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Talk to the local model from the command line.")
    sub = parser.add_subparsers(dest="command", required=True)

    ask = sub.add_parser("ask", help="Send a prompt and print the reply.")
    ask.add_argument("prompt", nargs="*")

    csv_cmd = sub.add_parser("generate-csv", help="Generate CSV content into a file.")
    csv_cmd.add_argument("prompt", nargs="*")
    csv_cmd.add_argument("--output", type=Path, default=Path("output") / "generated.csv")

    review = sub.add_parser("review-image", help="Describe a local image file.")
    review.add_argument("image", type=Path)
    review.add_argument("prompt", nargs="*")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()

    try:
        if args.command == "ask":
            asyncio.run(_ask(settings, " ".join(args.prompt) or DEFAULT_ASK_PROMPT))
        elif args.command == "generate-csv":
            asyncio.run(_generate_csv(settings, " ".join(args.prompt) or DEFAULT_CSV_PROMPT, args.output))
        else:
            if not args.image.is_file():
                print("Please provide a valid image file path.", file=sys.stderr)
                return 1
            asyncio.run(_review_image(settings, args.image, " ".join(args.prompt) or DEFAULT_REVIEW_PROMPT))
    except OrchestratorError as exc:
        print(f"Error: {exc.detail}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
