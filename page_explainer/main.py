"""Entry point — wires Config → VisionClient → AnalysisClient → RequestOrchestrator."""
import argparse
import asyncio
import logging
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown

from page_explainer.analysis import AnalysisClient, AnalysisFailure, AnalysisSuccess
from page_explainer.config import Config
from page_explainer.constants import (
    MSG_APP_STARTING,
    PROVIDER_CLAUDE,
    PROVIDER_GEMINI,
    PROVIDERS,
)
from page_explainer.images.validator import ImageCandidate
from page_explainer.orchestrator import RequestOrchestrator
from page_explainer.speech.controller import SpeechController
from page_explainer.speech.engine import SpeechEngine
from page_explainer.speech.text import to_speakable
from page_explainer.vision.claude import ClaudeVisionClient
from page_explainer.vision.client import VisionClient
from page_explainer.vision.gemini import GeminiVisionClient
from page_explainer.vision.openai import OpenAIVisionClient


def _setup_logging(level: str) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    list(map(root.removeHandler, root.handlers[:]))
    root.addHandler(RichHandler(rich_tracebacks=True))


def build_vision_client(config: Config) -> VisionClient:
    model_kwargs = {"model": config.vision_model} if config.vision_model else {}
    match config.vision_provider:
        case p if p == PROVIDER_GEMINI:
            return GeminiVisionClient(config.api_key, **model_kwargs)
        case p if p == PROVIDER_CLAUDE:
            return ClaudeVisionClient(config.api_key, **model_kwargs)
        case _:
            return OpenAIVisionClient(config.api_key, **model_kwargs)


def build_orchestrator(config: Config) -> RequestOrchestrator:
    return RequestOrchestrator(AnalysisClient(build_vision_client(config)))


def build_speech_controller(
    config: Config, engine: Optional[SpeechEngine] = None
) -> SpeechController:
    """No engine means narration is unsupported and --speakable prints the text instead."""
    return SpeechController(engine, language=config.speech_language, rate=config.speech_rate)


async def explain(
    orchestrator: RequestOrchestrator,
    image: Path,
    console: Console,
    speakable: bool = False,
    speech: Optional[SpeechController] = None,
) -> int:
    """Run one analysis and print it. Returns a process exit code."""
    try:
        candidate = ImageCandidate.from_path(image)
    except OSError as exc:
        console.print(f"[red]{exc}[/red]")
        return 1

    orchestrator.submit_image(candidate)
    try:
        outcome = await orchestrator.trigger_analysis()
    finally:
        orchestrator.reset()

    match outcome:
        case AnalysisSuccess(content=content) if speakable and speech and speech.is_supported:
            speech.speak(content)
            return 0
        case AnalysisSuccess(content=content) if speakable:
            console.print(to_speakable(content))
            return 0
        case AnalysisSuccess(content=content):
            console.print(Markdown(content))
            return 0
        case AnalysisFailure(message=message, code=code):
            console.print(f"[red]{code}[/red] {message}")
            return 1
        case _:
            return 1


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="page-explainer",
        description="Explain a photographed textbook page with a vision model.",
    )
    parser.add_argument("image", type=Path, help="JPEG, PNG, WebP or GIF, up to 10MB")
    parser.add_argument("--provider", choices=PROVIDERS, help="override VISION_PROVIDER")
    parser.add_argument(
        "--speakable",
        action="store_true",
        help="narrate the result (prints the narration text when speech is unsupported)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    config = Config.from_env(provider=args.provider)
    _setup_logging(config.log_level)

    logger = logging.getLogger(__name__)
    logger.info(MSG_APP_STARTING)

    orchestrator = build_orchestrator(config)
    speech = build_speech_controller(config)
    try:
        return asyncio.run(
            explain(orchestrator, args.image, Console(), speakable=args.speakable, speech=speech)
        )
    finally:
        speech.close()


if __name__ == "__main__":
    raise SystemExit(main())
