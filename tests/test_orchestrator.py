import asyncio
from datetime import datetime

import pytest

from page_explainer.analysis import AnalysisClient, AnalysisFailure, AnalysisSuccess
from page_explainer.constants import MSG_UNSUPPORTED_FORMAT
from page_explainer.errors import ErrorKind
from page_explainer.images.encoder import EncodedImage
from page_explainer.images.validator import ImageCandidate
from page_explainer.orchestrator import AnalysisStatus, RequestOrchestrator
from page_explainer.vision.client import VisionClient

JPEG_2MB = b"\xff\xd8\xff\xe0" + b"\x00" * (2 * 1024 * 1024)
REPLY = "## Overview\nThis page covers photosynthesis."


class FakeVision(VisionClient):
    """Counts calls; blocks until released when ``blocking`` is set."""

    def __init__(self, reply: str = REPLY, error: Exception | None = None, blocking: bool = False):
        self.reply = reply
        self.error = error
        self.calls: list[EncodedImage] = []
        self.release = asyncio.Event()
        if not blocking:
            self.release.set()

    async def analyze(self, image: EncodedImage, prompt: str) -> str:
        self.calls.append(image)
        await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.reply


def make_orchestrator(vision: VisionClient) -> RequestOrchestrator:
    return RequestOrchestrator(AnalysisClient(vision))


def jpeg_candidate(data: bytes = JPEG_2MB) -> ImageCandidate:
    return ImageCandidate.from_bytes(data, "image/jpeg", "page.jpg")


async def wait_for_call(vision: FakeVision) -> None:
    while not vision.calls:
        await asyncio.sleep(0)


# ── scenarios ─────────────────────────────────────────────────────────────────


async def test_bmp_is_rejected_without_provider_call():
    vision = FakeVision()
    orchestrator = make_orchestrator(vision)
    orchestrator.submit_image(ImageCandidate.from_bytes(b"BM..", "image/bmp", "page.bmp"))

    outcome = await orchestrator.trigger_analysis()

    assert isinstance(outcome, AnalysisFailure)
    assert outcome.kind is ErrorKind.UNSUPPORTED_FORMAT
    assert orchestrator.status is AnalysisStatus.ERROR
    assert orchestrator.view().error_message == MSG_UNSUPPORTED_FORMAT
    assert orchestrator.view().preview_path is None
    assert vision.calls == []


async def test_valid_jpeg_completes_with_verbatim_text():
    vision = FakeVision()
    orchestrator = make_orchestrator(vision)
    orchestrator.submit_image(jpeg_candidate())

    outcome = await orchestrator.trigger_analysis()

    assert isinstance(outcome, AnalysisSuccess)
    assert orchestrator.status is AnalysisStatus.COMPLETE
    assert outcome.content == REPLY
    datetime.fromisoformat(outcome.timestamp.replace("Z", "+00:00"))
    assert vision.calls[0].to_bytes() == JPEG_2MB
    orchestrator.reset()


async def test_data_uri_candidate_reaches_provider_without_prefix():
    vision = FakeVision()
    orchestrator = make_orchestrator(vision)
    orchestrator.submit_image(
        ImageCandidate(source="data:image/png;base64,QUJD", mime_type="image/png", size=3, file_name="page.png")
    )

    outcome = await orchestrator.trigger_analysis()

    assert isinstance(outcome, AnalysisSuccess)
    assert vision.calls[0].data == "QUJD"
    orchestrator.reset()


async def test_quota_error_ends_in_error_state():
    orchestrator = make_orchestrator(FakeVision(error=RuntimeError("quota exhausted")))
    orchestrator.submit_image(jpeg_candidate(b"\xff\xd8"))

    outcome = await orchestrator.trigger_analysis()

    assert outcome.kind is ErrorKind.QUOTA_EXCEEDED
    assert outcome.code == "API_ERROR"
    assert orchestrator.status is AnalysisStatus.ERROR


async def test_encoding_failure_ends_in_error_state(tmp_path):
    vision = FakeVision()
    orchestrator = make_orchestrator(vision)
    orchestrator.submit_image(
        ImageCandidate(source=tmp_path / "missing.png", mime_type="image/png", size=10, file_name="missing.png")
    )

    outcome = await orchestrator.trigger_analysis()

    assert outcome.kind is ErrorKind.ENCODING_FAILED
    assert orchestrator.status is AnalysisStatus.ERROR
    assert orchestrator.view().preview_path is None
    assert vision.calls == []


async def test_unexpected_client_failure_is_reported_as_unknown():
    class BrokenClient(AnalysisClient):
        async def analyze(self, image):
            raise KeyError("boom")

    orchestrator = RequestOrchestrator(BrokenClient(FakeVision()))
    orchestrator.submit_image(jpeg_candidate(b"\xff\xd8"))

    outcome = await orchestrator.trigger_analysis()

    assert outcome.code == "UNKNOWN"
    assert orchestrator.status is AnalysisStatus.ERROR
    orchestrator.reset()


# ── re-entrancy ───────────────────────────────────────────────────────────────


async def test_double_trigger_makes_one_provider_call():
    vision = FakeVision(blocking=True)
    orchestrator = make_orchestrator(vision)
    orchestrator.submit_image(jpeg_candidate(b"\xff\xd8"))

    first = asyncio.create_task(orchestrator.trigger_analysis())
    await asyncio.sleep(0)
    second = await orchestrator.trigger_analysis()
    await wait_for_call(vision)
    vision.release.set()
    outcome = await first

    assert second is None
    assert len(vision.calls) == 1
    assert isinstance(outcome, AnalysisSuccess)
    orchestrator.reset()


async def test_status_is_analyzing_while_provider_pending():
    vision = FakeVision(blocking=True)
    orchestrator = make_orchestrator(vision)
    orchestrator.submit_image(jpeg_candidate(b"\xff\xd8"))

    task = asyncio.create_task(orchestrator.trigger_analysis())
    await wait_for_call(vision)

    assert orchestrator.status is AnalysisStatus.ANALYZING
    assert orchestrator.in_flight
    vision.release.set()
    await task
    assert not orchestrator.in_flight
    orchestrator.reset()


async def test_submit_during_analysis_is_ignored():
    vision = FakeVision(blocking=True)
    orchestrator = make_orchestrator(vision)
    original = jpeg_candidate(b"\xff\xd8")
    orchestrator.submit_image(original)

    task = asyncio.create_task(orchestrator.trigger_analysis())
    await wait_for_call(vision)
    accepted = orchestrator.submit_image(jpeg_candidate(b"\xff\xd9"))
    vision.release.set()
    await task

    assert accepted is False
    assert orchestrator.candidate is original
    orchestrator.reset()


async def test_reset_during_analysis_discards_the_attempt():
    vision = FakeVision(blocking=True)
    orchestrator = make_orchestrator(vision)
    orchestrator.submit_image(jpeg_candidate(b"\xff\xd8"))

    task = asyncio.create_task(orchestrator.trigger_analysis())
    await wait_for_call(vision)
    orchestrator.reset()

    assert await task is None
    assert orchestrator.status is AnalysisStatus.IDLE
    assert orchestrator.outcome is None
    assert orchestrator.candidate is None
    assert not orchestrator.in_flight


async def test_cancelled_caller_leaves_terminal_error_state():
    vision = FakeVision(blocking=True)
    orchestrator = make_orchestrator(vision)
    orchestrator.submit_image(jpeg_candidate(b"\xff\xd8"))

    task = asyncio.create_task(orchestrator.trigger_analysis())
    await wait_for_call(vision)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    assert orchestrator.status is AnalysisStatus.ERROR
    assert orchestrator.outcome.kind is ErrorKind.UNEXPECTED
    assert orchestrator.outcome.code == "UNKNOWN"
    assert not orchestrator.in_flight
    orchestrator.reset()


# ── lifecycle ─────────────────────────────────────────────────────────────────


async def test_trigger_without_candidate_is_noop():
    vision = FakeVision()
    orchestrator = make_orchestrator(vision)

    assert await orchestrator.trigger_analysis() is None
    assert orchestrator.status is AnalysisStatus.IDLE
    assert vision.calls == []


async def test_submit_clears_previous_result():
    orchestrator = make_orchestrator(FakeVision())
    orchestrator.submit_image(jpeg_candidate(b"\xff\xd8"))
    await orchestrator.trigger_analysis()

    orchestrator.submit_image(jpeg_candidate(b"\xff\xd9"))

    assert orchestrator.status is AnalysisStatus.IDLE
    assert orchestrator.outcome is None
    assert orchestrator.view().result is None


async def test_error_can_be_retriggered_explicitly():
    vision = FakeVision(error=RuntimeError("socket closed"))
    orchestrator = make_orchestrator(vision)
    orchestrator.submit_image(jpeg_candidate(b"\xff\xd8"))
    await orchestrator.trigger_analysis()

    vision.error = None
    outcome = await orchestrator.trigger_analysis()

    assert isinstance(outcome, AnalysisSuccess)
    assert len(vision.calls) == 2
    orchestrator.reset()


async def test_preview_lives_until_reset():
    orchestrator = make_orchestrator(FakeVision())
    orchestrator.submit_image(jpeg_candidate(b"\xff\xd8"))
    await orchestrator.trigger_analysis()
    preview = orchestrator.view().preview_path

    assert preview is not None and preview.exists()
    orchestrator.reset()
    assert not preview.exists()
    assert orchestrator.view().preview_path is None


async def test_listeners_see_every_transition():
    orchestrator = make_orchestrator(FakeVision())
    orchestrator.submit_image(jpeg_candidate(b"\xff\xd8"))
    seen = []
    unsubscribe = orchestrator.subscribe(lambda view: seen.append(view.status))

    await orchestrator.trigger_analysis()
    unsubscribe()
    orchestrator.reset()

    assert seen == [AnalysisStatus.UPLOADING, AnalysisStatus.ANALYZING, AnalysisStatus.COMPLETE]


@pytest.mark.parametrize("status", list(AnalysisStatus))
def test_status_values_are_wire_strings(status):
    assert status.value == status.name.lower()
