"""Tests for the dispatch pipeline: transcript filtering, verdicts and delivery."""

import asyncio
import time
from unittest.mock import AsyncMock, MagicMock

import pytest

from engress.core.dispatch import DispatchConfig, DispatchPipeline, accept_transcript
from engress.core.events import EventKind, FinalizedUtterance, UtteranceEvent


class FakeSession:
    def __init__(self):
        self.send = AsyncMock()

    @property
    def events(self):
        return [call.args[0] for call in self.send.await_args_list]


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def registry(session):
    return {"s1": session}


@pytest.fixture
def utterance(tmp_path):
    path = tmp_path / "s1-1000.wav"
    path.write_bytes(b"RIFF")
    return FinalizedUtterance(session_id="s1", path=path, began_at=1000, topics=("Intro", "Outro"))


def make_pipeline(registry, transcriber=None, judge=None, cfg=DispatchConfig()):
    return DispatchPipeline(
        sessions=registry.get,
        transcriber=transcriber or MagicMock(return_value="Hello everyone"),
        judge=judge or AsyncMock(return_value="1"),
        cfg=cfg,
    )


class TestAcceptTranscript:

    @pytest.mark.parametrize("text", ["Hello", "  a  ", "Topic 2 covered"])
    def test_accepted(self, text):
        assert accept_transcript(text)

    @pytest.mark.parametrize("text", [None, "", "   ", "123", "...", "*music*", "Hello *laughs*"])
    def test_rejected(self, text):
        assert not accept_transcript(text)


class TestDispatchPipeline:

    @pytest.mark.asyncio
    async def test_accepted_transcript_emits_transcript_and_verdict(self, registry, session, utterance):
        judge = AsyncMock(return_value="1")
        pipeline = make_pipeline(registry, judge=judge)

        await pipeline.process(utterance)

        assert sorted(session.events, key=lambda e: e.kind) == [
            UtteranceEvent(EventKind.TRANSCRIPT, "Hello everyone", 1000),
            UtteranceEvent(EventKind.VERDICT, "1", 1000),
        ]
        judge.assert_awaited_once_with("Hello everyone", ("Intro", "Outro"))

    @pytest.mark.asyncio
    async def test_transcriber_receives_file_path(self, registry, utterance):
        transcriber = MagicMock(return_value="Hello")
        pipeline = make_pipeline(registry, transcriber=transcriber)
        await pipeline.process(utterance)
        transcriber.assert_called_once_with(utterance.path)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "123", "*music*", "  "])
    async def test_rejected_transcript_emits_nothing(self, registry, session, utterance, text):
        judge = AsyncMock(return_value="1")
        pipeline = make_pipeline(registry, transcriber=MagicMock(return_value=text), judge=judge)

        await pipeline.process(utterance)

        session.send.assert_not_awaited()
        judge.assert_not_awaited()
        assert not utterance.path.exists()

    @pytest.mark.asyncio
    async def test_file_deleted_after_transcription(self, registry, utterance):
        pipeline = make_pipeline(registry)
        await pipeline.process(utterance)
        assert not utterance.path.exists()

    @pytest.mark.asyncio
    async def test_transcriber_failure_emits_nothing(self, registry, session, utterance):
        transcriber = MagicMock(side_effect=RuntimeError("decoder crashed"))
        pipeline = make_pipeline(registry, transcriber=transcriber)

        await pipeline.process(utterance)

        session.send.assert_not_awaited()
        assert not utterance.path.exists()

    @pytest.mark.asyncio
    async def test_judge_failure_yields_no_topics(self, registry, session, utterance):
        judge = AsyncMock(side_effect=ConnectionError("provider down"))
        pipeline = make_pipeline(registry, judge=judge)

        await pipeline.process(utterance)

        verdicts = [e for e in session.events if e.kind is EventKind.VERDICT]
        assert verdicts == [UtteranceEvent(EventKind.VERDICT, "!", 1000)]
        assert any(e.kind is EventKind.TRANSCRIPT for e in session.events)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw,expected", [
        ("2", "2"),
        ("!", "!"),
        ("1 3", "1 3"),
        ("1\n 2", "1 2"),
        ("Topic 2", "!"),
        ("", "!"),
        ("1, 2", "!"),
    ])
    async def test_verdict_is_validated(self, registry, session, utterance, raw, expected):
        pipeline = make_pipeline(registry, judge=AsyncMock(return_value=raw))

        await pipeline.process(utterance)

        verdict = next(e for e in session.events if e.kind is EventKind.VERDICT)
        assert verdict.content == expected

    @pytest.mark.asyncio
    async def test_closed_session_results_are_dropped(self, registry, session, utterance):
        pipeline = make_pipeline(registry)
        registry.clear()

        await pipeline.process(utterance)

        session.send.assert_not_awaited()
        assert not utterance.path.exists()

    @pytest.mark.asyncio
    async def test_send_failure_is_contained(self, registry, session, utterance):
        session.send.side_effect = RuntimeError("socket closed")
        pipeline = make_pipeline(registry)

        await pipeline.process(utterance)

        assert session.send.await_count == 2

    @pytest.mark.asyncio
    async def test_transcription_timeout_emits_nothing(self, registry, session, utterance):
        def slow_transcriber(path):
            time.sleep(0.3)
            return "Too late"

        pipeline = make_pipeline(
            registry,
            transcriber=slow_transcriber,
            cfg=DispatchConfig(transcription_timeout_s=0.05),
        )

        await pipeline.process(utterance)

        session.send.assert_not_awaited()
        assert not utterance.path.exists()

    @pytest.mark.asyncio
    async def test_inference_timeout_yields_no_topics(self, registry, session, utterance):
        async def slow_judge(transcript, topics):
            await asyncio.sleep(1)
            return "1"

        pipeline = make_pipeline(
            registry,
            judge=slow_judge,
            cfg=DispatchConfig(inference_timeout_s=0.05),
        )

        await pipeline.process(utterance)

        verdict = next(e for e in session.events if e.kind is EventKind.VERDICT)
        assert verdict.content == "!"

    @pytest.mark.asyncio
    async def test_bounded_transcriptions_still_complete(self, registry, session, tmp_path):
        pipeline = make_pipeline(registry, cfg=DispatchConfig(max_concurrent_transcriptions=1))
        utterances = []
        for began_at in (1, 2, 3):
            path = tmp_path / f"s1-{began_at}.wav"
            path.write_bytes(b"RIFF")
            utterances.append(FinalizedUtterance("s1", path, began_at, ("Intro",)))

        await asyncio.gather(*(pipeline.submit(u) for u in utterances))

        transcripts = sorted(e.began_at for e in session.events if e.kind is EventKind.TRANSCRIPT)
        assert transcripts == [1, 2, 3]
        assert pipeline.pending == 0

    @pytest.mark.asyncio
    async def test_submit_runs_in_background(self, registry, session, utterance):
        pipeline = make_pipeline(registry)

        task = pipeline.submit(utterance)
        assert pipeline.pending == 1
        await task

        assert pipeline.pending == 0
        assert session.send.await_count == 2

    @pytest.mark.asyncio
    async def test_shutdown_cancels_outstanding_work(self, registry, session, utterance):
        async def hanging_judge(transcript, topics):
            await asyncio.sleep(10)
            return "1"

        pipeline = make_pipeline(registry, judge=hanging_judge)
        task = pipeline.submit(utterance)
        # Let transcription finish and the judge start
        for _ in range(50):
            await asyncio.sleep(0.01)
            if session.send.await_count:
                break

        await pipeline.shutdown()

        assert task.cancelled()
        assert pipeline.pending == 0
        assert all(e.kind is EventKind.TRANSCRIPT for e in session.events)
