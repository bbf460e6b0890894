from __future__ import annotations

import asyncio

import pytest
from conftest import FakeBackend

from pagechat.errors import RunError, RunTimeoutError, SynthesisError
from pagechat.orchestrator import RunOrchestrator


async def _no_sleep(_: float) -> None:
    await asyncio.sleep(0)


class RecordingSynthesizer:
    def __init__(self, audio: bytes = b"ID3-audio", error: Exception | None = None) -> None:
        self.audio = audio
        self.error = error
        self.texts: list[str] = []

    async def synthesize(self, text: str) -> bytes:
        self.texts.append(text)
        if self.error is not None:
            raise self.error
        return self.audio


@pytest.mark.anyio
async def test_ask_polls_until_completed_and_returns_latest_message() -> None:
    backend = FakeBackend(statuses=["queued", "in_progress", "completed"], reply="Fetch returns a promise.")
    orchestrator = RunOrchestrator(backend, "asst_1", sleep=_no_sleep)

    artifact = await orchestrator.ask("thread_1", "What does fetch return?")

    assert artifact.text == "Fetch returns a promise."
    assert artifact.audio is None
    assert backend.status_reads == 3
    assert [c[0] for c in backend.calls] == ["add_message", "create_run"]
    assert backend.calls[1] == ("create_run", "thread_1", "asst_1")


@pytest.mark.anyio
async def test_ask_sleeps_between_polls() -> None:
    backend = FakeBackend(statuses=["queued", "in_progress", "completed"])
    slept: list[float] = []

    async def sleep(seconds: float) -> None:
        slept.append(seconds)

    await RunOrchestrator(backend, "asst_1", poll_interval=1.0, sleep=sleep).ask("thread_1", "q")

    assert slept == [1.0, 1.0]


@pytest.mark.anyio
async def test_failed_run_raises_without_reading_messages() -> None:
    backend = FakeBackend(statuses=["queued", "failed"])
    orchestrator = RunOrchestrator(backend, "asst_1", sleep=_no_sleep)

    with pytest.raises(RunError) as excinfo:
        await orchestrator.ask("thread_1", "q")

    assert excinfo.value.status == "failed"
    assert backend.message_reads == 0


@pytest.mark.anyio
async def test_other_terminal_status_is_a_run_error() -> None:
    backend = FakeBackend(statuses=["expired"])

    with pytest.raises(RunError) as excinfo:
        await RunOrchestrator(backend, "asst_1", sleep=_no_sleep).ask("thread_1", "q")

    assert excinfo.value.status == "expired"


@pytest.mark.anyio
async def test_stuck_run_times_out_after_max_polls() -> None:
    backend = FakeBackend(statuses=["in_progress"])
    orchestrator = RunOrchestrator(backend, "asst_1", max_polls=4, sleep=_no_sleep)

    with pytest.raises(RunTimeoutError) as excinfo:
        await orchestrator.ask("thread_1", "q")

    assert excinfo.value.status == "in_progress"
    assert backend.status_reads == 4
    assert backend.message_reads == 0


@pytest.mark.anyio
async def test_stuck_run_times_out_after_max_wait() -> None:
    backend = FakeBackend(statuses=["queued"])
    now = [0.0]

    async def sleep(seconds: float) -> None:
        now[0] += seconds

    orchestrator = RunOrchestrator(
        backend,
        "asst_1",
        poll_interval=1.0,
        max_wait_seconds=3.0,
        max_polls=1000,
        sleep=sleep,
        clock=lambda: now[0],
    )

    with pytest.raises(RunTimeoutError) as excinfo:
        await orchestrator.ask("thread_1", "q")

    assert excinfo.value.elapsed == pytest.approx(3.0)
    assert backend.status_reads == 4


@pytest.mark.anyio
async def test_answer_carries_synthesized_audio() -> None:
    backend = FakeBackend(reply="Spoken answer")
    synth = RecordingSynthesizer(audio=b"\xff\xfbmp3")

    artifact = await RunOrchestrator(backend, "asst_1", synthesizer=synth, sleep=_no_sleep).ask("thread_1", "q")

    assert artifact.audio == b"\xff\xfbmp3"
    assert synth.texts == ["Spoken answer"]


@pytest.mark.anyio
async def test_synthesis_failure_keeps_text_answer() -> None:
    backend = FakeBackend(reply="Still here")
    synth = RecordingSynthesizer(error=SynthesisError("tts down"))

    artifact = await RunOrchestrator(backend, "asst_1", synthesizer=synth, sleep=_no_sleep).ask("thread_1", "q")

    assert artifact.text == "Still here"
    assert artifact.audio is None


@pytest.mark.anyio
async def test_text_only_ask_does_not_synthesize() -> None:
    backend = FakeBackend(reply="Quiet answer")
    synth = RecordingSynthesizer(audio=b"\xff\xfbmp3")
    orchestrator = RunOrchestrator(backend, "asst_1", synthesizer=synth, sleep=_no_sleep)

    artifact = await orchestrator.ask("thread_1", "q", speak=False)

    assert artifact.text == "Quiet answer"
    assert artifact.audio is None
    assert synth.texts == []


class SlowBackend(FakeBackend):
    def __init__(self) -> None:
        super().__init__(statuses=["in_progress", "completed"])
        self.active_runs = 0
        self.max_active = 0

    async def create_run(self, thread_id, assistant_id):
        self.active_runs += 1
        self.max_active = max(self.max_active, self.active_runs)
        self.statuses = ["in_progress", "completed"]
        return await super().create_run(thread_id, assistant_id)

    async def latest_message(self, thread_id):
        self.active_runs -= 1
        return await super().latest_message(thread_id)


@pytest.mark.anyio
async def test_questions_on_one_session_are_serialized() -> None:
    backend = SlowBackend()
    orchestrator = RunOrchestrator(backend, "asst_1", sleep=_no_sleep)

    await asyncio.gather(
        orchestrator.ask("thread_1", "first"),
        orchestrator.ask("thread_1", "second"),
    )

    assert backend.max_active == 1
    added = [c[2] for c in backend.calls if c[0] == "add_message"]
    assert added == ["first", "second"]
