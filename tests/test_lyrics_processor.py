"""Tests for the lyrics processing pipeline and request sequencing."""

import asyncio
import math
import threading

import numpy as np
import pytest

from lyryc.core.lyrics_processor import (
    CancellationToken,
    LyricsProcessor,
    LyricsSession,
    ProcessorConfig,
    RequestSequencer,
)
from lyryc.core.models import LyricsRecord
from lyryc.core.timing_models import AlignmentResult
from lyryc.exceptions import (
    NetworkError,
    RefinementUnavailable,
    RequestCancelled,
    ValidationError,
)


class FakeAligner:
    def __init__(self, confidence=0.9, shift=0.25, success=True):
        self.confidence = confidence
        self.shift = shift
        self.success = success
        self.calls = []

    def align(self, samples, sample_rate, lines, reference_times=None, should_cancel=None):
        self.calls.append(reference_times)
        moved = [line.with_time(line.time + self.shift) for line in lines]
        return AlignmentResult(
            lines=moved,
            confidence=self.confidence,
            success=self.success,
            error=None if self.success else "failed",
        )


def _fake_loader(source):
    return np.zeros(22050), 22050


def _processor(client, **kwargs):
    config = kwargs.pop("config", ProcessorConfig(enable_ai_alignment=False))
    return LyricsProcessor(client=client, config=config, **kwargs)


def _run(coro):
    return asyncio.run(coro)


class TestCancellationToken:
    def test_explicit_cancel(self):
        token = CancellationToken()
        assert token.is_current
        token.cancel()
        assert token.cancelled
        with pytest.raises(RequestCancelled):
            token.raise_if_cancelled("anything")

    def test_sequencer_supersedes(self):
        sequencer = RequestSequencer()
        first = sequencer.issue()
        second = sequencer.issue()

        assert second.request_id > first.request_id
        assert first.cancelled
        assert second.is_current
        assert sequencer.current_id == second.request_id


class TestProcessTrackLyrics:
    def test_synced_lyrics(self, fake_client, synced_record, memory_cache):
        fake_client.records[("Never Gonna Give You Up", "Rick Astley")] = synced_record
        processor = _processor(fake_client, cache=memory_cache)

        result = _run(processor.process_track_lyrics("Never Gonna Give You Up", "Rick Astley"))

        assert result.status == "found"
        assert result.method == "original"
        assert result.confidence == pytest.approx(0.8)
        assert result.source == "lrclib"
        assert result.language == "en"
        assert result.has_word_timings
        assert len(result.lyrics) == 4
        assert result.lyrics[2].text == "A full commitment's what I'm thinking of"
        assert result.lyrics[0].time == pytest.approx(18.6)
        assert memory_cache.get("never gonna give you up", "rick astley") is not None

    def test_words_span_their_lines(self, fake_client, synced_record):
        fake_client.records[("Song", "Artist")] = synced_record
        result = _run(_processor(fake_client).process_track_lyrics("Song", "Artist"))

        for line in result.lyrics:
            assert line.words[0].start == pytest.approx(line.time, abs=1e-3)
            assert line.words[-1].end == pytest.approx(line.time + line.duration, abs=1e-3)

    def test_cache_hit_skips_client(self, fake_client, synced_record, memory_cache):
        memory_cache.set("Song", "Artist", synced_record.to_dict())
        result = _run(_processor(fake_client, cache=memory_cache).process_track_lyrics("Song", "Artist"))

        assert result.source == "cache"
        assert result.method == "original"
        assert fake_client.calls == []

    def test_plain_lyrics_use_record_duration(self, fake_client, plain_record):
        fake_client.records[("Yesterday", "The Beatles")] = plain_record
        result = _run(_processor(fake_client).process_track_lyrics("Yesterday", "The Beatles"))

        assert result.method == "fallback"
        assert result.confidence == pytest.approx(0.3)
        assert len(result.lyrics) == 5
        assert result.lyrics[0].time == 0.0
        last = result.lyrics[-1]
        assert last.time + last.duration == pytest.approx(125.0)
        assert result.has_word_timings

    def test_plain_lyrics_explicit_duration(self, fake_client, plain_record):
        plain_record.duration = None
        fake_client.records[("Yesterday", "The Beatles")] = plain_record
        result = _run(
            _processor(fake_client).process_track_lyrics("Yesterday", "The Beatles", duration_sec=60.0)
        )
        last = result.lyrics[-1]
        assert last.time + last.duration == pytest.approx(60.0)

    def test_plain_lyrics_placeholder_duration(self, fake_client, plain_record):
        plain_record.duration = None
        fake_client.records[("Yesterday", "The Beatles")] = plain_record
        result = _run(_processor(fake_client).process_track_lyrics("Yesterday", "The Beatles"))
        last = result.lyrics[-1]
        assert last.time + last.duration == pytest.approx(25.0)

    def test_not_found(self, fake_client):
        result = _run(_processor(fake_client).process_track_lyrics("Unknown", "Nobody"))

        assert result.status == "not_found"
        assert result.lyrics == []
        assert not result.found

    def test_instrumental_is_not_found(self, fake_client):
        fake_client.records[("Song", "Artist")] = LyricsRecord("Song", "Artist", instrumental=True)
        result = _run(_processor(fake_client).process_track_lyrics("Song", "Artist"))
        assert result.status == "not_found"

    def test_network_error(self, fake_client):
        fake_client.error = NetworkError("unreachable")
        result = _run(_processor(fake_client).process_track_lyrics("Song", "Artist"))

        assert result.status == "error"
        assert result.error
        assert result.lyrics == []

    def test_invalid_duration(self, fake_client):
        with pytest.raises(ValidationError):
            _run(_processor(fake_client).process_track_lyrics("Song", "Artist", duration_sec=math.nan))

    def test_cancelled_before_start(self, fake_client):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(RequestCancelled):
            _run(_processor(fake_client).process_track_lyrics("Song", "Artist", token=token))
        assert fake_client.calls == []

    def test_japanese_lyrics(self, fake_client):
        fake_client.records[("夜に駆ける", "YOASOBI")] = LyricsRecord(
            "夜に駆ける", "YOASOBI",
            synced_lyrics="[00:01.00]沈むように溶けてゆくように\n[00:05.00]二人だけの空が広がる夜に",
        )
        result = _run(_processor(fake_client).process_track_lyrics("夜に駆ける", "YOASOBI"))
        assert result.language == "ja"

    def test_fixed_language(self, fake_client, synced_record):
        fake_client.records[("Song", "Artist")] = synced_record
        config = ProcessorConfig(enable_ai_alignment=False, language="de")
        result = _run(_processor(fake_client, config=config).process_track_lyrics("Song", "Artist"))
        assert result.language == "de"

    def test_unsupported_language(self, fake_client):
        config = ProcessorConfig(enable_ai_alignment=False, language="xx")
        with pytest.raises(ValidationError):
            _run(_processor(fake_client, config=config).process_track_lyrics("Song", "Artist"))
        assert fake_client.calls == []


class TestRefinement:
    def _config(self, threshold=0.6):
        return ProcessorConfig(enable_ai_alignment=True, confidence_threshold=threshold)

    def test_confident_alignment_accepted(self, fake_client, synced_record):
        fake_client.records[("Song", "Artist")] = synced_record
        aligner = FakeAligner(confidence=0.9)
        processor = _processor(
            fake_client, config=self._config(), aligner=aligner, audio_loader=_fake_loader
        )
        result = _run(processor.process_track_lyrics("Song", "Artist", audio_url="song.wav"))

        assert result.method == "ai-aligned"
        assert result.confidence == pytest.approx(0.9)
        assert result.lyrics[0].time == pytest.approx(18.85)
        assert aligner.calls[0] == pytest.approx([18.6, 22.8, 27.0, 31.2])

    def test_low_confidence_rejected(self, fake_client, synced_record):
        fake_client.records[("Song", "Artist")] = synced_record
        processor = _processor(
            fake_client, config=self._config(), aligner=FakeAligner(confidence=0.4),
            audio_loader=_fake_loader,
        )
        result = _run(processor.process_track_lyrics("Song", "Artist", audio_url="song.wav"))

        assert result.method == "original"
        assert result.lyrics[0].time == pytest.approx(18.6)

    def test_failed_alignment_rejected(self, fake_client, synced_record):
        fake_client.records[("Song", "Artist")] = synced_record
        processor = _processor(
            fake_client, config=self._config(), aligner=FakeAligner(success=False),
            audio_loader=_fake_loader,
        )
        result = _run(processor.process_track_lyrics("Song", "Artist", audio_url="song.wav"))
        assert result.method == "original"

    def test_audio_unavailable(self, fake_client, synced_record):
        fake_client.records[("Song", "Artist")] = synced_record

        def broken_loader(source):
            raise RefinementUnavailable("404")

        processor = _processor(
            fake_client, config=self._config(), aligner=FakeAligner(), audio_loader=broken_loader
        )
        result = _run(processor.process_track_lyrics("Song", "Artist", audio_url="https://x/a.mp3"))
        assert result.method == "original"
        assert result.status == "found"

    def test_disabled_refinement_skips_audio(self, fake_client, synced_record):
        fake_client.records[("Song", "Artist")] = synced_record
        loaded = []

        def loader(source):
            loaded.append(source)
            return _fake_loader(source)

        processor = _processor(fake_client, aligner=FakeAligner(), audio_loader=loader)
        _run(processor.process_track_lyrics("Song", "Artist", audio_url="song.wav"))
        assert loaded == []


class TestLyricsSession:
    def test_commits_result(self, fake_client, synced_record):
        fake_client.records[("Song", "Artist")] = synced_record
        session = LyricsSession(_processor(fake_client))

        result = _run(session.request("Song", "Artist"))
        assert session.current is result
        assert session.current_track == ("Song", "Artist")

    def test_newer_request_wins_race(self, fake_client, synced_record, plain_record):
        fake_client.records[("Song A", "Artist")] = synced_record
        fake_client.records[("Song B", "Artist")] = plain_record
        gate = threading.Event()
        fake_client.gates[("Song A", "Artist")] = gate
        session = LyricsSession(_processor(fake_client))

        async def scenario():
            task_a = asyncio.create_task(session.request("Song A", "Artist"))
            await asyncio.sleep(0.05)
            result_b = await session.request("Song B", "Artist")
            # A's lookup only answers after B has finished
            gate.set()
            result_a = await task_a
            return result_a, result_b

        result_a, result_b = _run(scenario())

        assert result_a is None
        assert result_b is not None
        assert session.current is result_b
        assert session.current_track == ("Song B", "Artist")
        assert ("Song A", "Artist") in fake_client.calls

    def test_not_found_still_commits(self, fake_client):
        session = LyricsSession(_processor(fake_client))
        result = _run(session.request("Unknown", "Nobody"))
        assert session.current is result
        assert result.status == "not_found"
