"""
Tests for the capture-based transcoder, including resource release on every
failure path.
"""
import asyncio

import pytest

from smart_preview.config.audio import AUDIO_BITS_PER_SECOND
from smart_preview.config.video import VIDEO_BITS_PER_SECOND
from smart_preview.domain.exceptions import (
    CaptureUnsupported,
    DecodeError,
    InvalidAssetKind,
    NoAudioTrack,
    TranscodeError,
)
from smart_preview.domain.media import MediaAsset, MediaKind
from smart_preview.services.transcoder import CaptureTranscoder

from .fakes import FakeRuntime, fake_asset, parse_fake_media


def test_audio_conversion(runtime, transcoder):
    source = fake_asset(20, filename="voice.m4a", mime_type="audio/m4a")
    output = asyncio.run(transcoder.transcode(source))

    assert output.filename == "voice_converted.webm"
    assert output.mime_type == "audio/webm;codecs=opus"
    assert parse_fake_media(output.payload) == 20
    assert source.filename == "voice.m4a"  # input untouched
    recorder = runtime.recorders[0]
    assert recorder.audio_bits_per_second == AUDIO_BITS_PER_SECOND
    assert recorder.video_bits_per_second is None
    assert runtime.handles_acquired == 1
    assert runtime.tracks_acquired == 1
    assert runtime.balanced


def test_video_conversion_is_muted_and_uses_vp8(runtime, transcoder):
    source = fake_asset(8, filename="clip.final.mov", mime_type="video/quicktime")
    output = asyncio.run(transcoder.transcode(source))

    assert output.filename == "clip.final_converted.webm"
    assert output.mime_type == "video/webm;codecs=vp8,opus"
    assert runtime.elements[-1].muted is True
    assert runtime.recorders[0].video_bits_per_second == VIDEO_BITS_PER_SECOND
    assert runtime.tracks_acquired == 2
    assert runtime.balanced


def test_audio_element_is_not_muted(runtime, transcoder):
    asyncio.run(transcoder.transcode(fake_asset(3)))
    assert runtime.elements[-1].muted is False


def test_falls_back_to_bare_webm():
    runtime = FakeRuntime(recorder_types={"audio/webm", "video/webm"})
    transcoder = CaptureTranscoder(runtime, deadline_factory=runtime.deadline_factory)

    audio = asyncio.run(transcoder.transcode(fake_asset(3)))
    video = asyncio.run(transcoder.transcode(fake_asset(3, "clip.mkv", "video/x-matroska")))

    assert audio.mime_type == "audio/webm"
    assert video.mime_type == "video/webm"
    assert runtime.balanced


def test_conversion_is_bounded_by_safety_timeout():
    runtime = FakeRuntime()
    transcoder = CaptureTranscoder(runtime, deadline_factory=runtime.deadline_factory, conversion_timeout=300)
    output = asyncio.run(transcoder.transcode(fake_asset(3600)))
    assert parse_fake_media(output.payload) == 300
    assert runtime.balanced


def test_no_supported_recorder_type():
    runtime = FakeRuntime(recorder_types=set())
    transcoder = CaptureTranscoder(runtime, deadline_factory=runtime.deadline_factory)
    with pytest.raises(CaptureUnsupported):
        asyncio.run(transcoder.transcode(fake_asset(3)))
    assert runtime.tracks_acquired == 1
    assert runtime.balanced


def test_capture_unsupported(runtime, transcoder):
    runtime.capture_supported = False
    with pytest.raises(CaptureUnsupported):
        asyncio.run(transcoder.transcode(fake_asset(3)))
    assert runtime.handles_acquired == 1
    assert runtime.tracks_acquired == 0
    assert runtime.balanced


def test_decode_error(runtime, transcoder):
    broken = MediaAsset(payload=b"not media", mime_type="", filename="broken.mp3")
    with pytest.raises(DecodeError):
        asyncio.run(transcoder.transcode(broken))
    assert runtime.recorders == []
    assert runtime.balanced


def test_playback_rejected(runtime, transcoder):
    runtime.reject_play = True
    with pytest.raises(TranscodeError, match="Playback failed") as exc_info:
        asyncio.run(transcoder.transcode(fake_asset(10)))
    assert isinstance(exc_info.value.__cause__, PermissionError)
    assert runtime.recorders[0].state == "inactive"
    assert runtime.balanced


def test_recorder_error(runtime, transcoder):
    runtime.recorder_error = True
    with pytest.raises(TranscodeError, match="encoder crashed"):
        asyncio.run(transcoder.transcode(fake_asset(10)))
    assert runtime.balanced


def test_decode_failure_during_playback(runtime, transcoder):
    runtime.playback_error = True
    with pytest.raises(TranscodeError, match="MEDIA_ERR_DECODE"):
        asyncio.run(transcoder.transcode(fake_asset(10)))
    assert runtime.balanced


def test_unsupported_asset_allocates_nothing(runtime, transcoder):
    with pytest.raises(InvalidAssetKind):
        asyncio.run(transcoder.transcode(MediaAsset(b"x", "text/plain", "notes.txt")))
    assert runtime.handles_acquired == 0


def test_cancelling_a_capture_releases_resources(runtime, transcoder):
    runtime.never_end = True

    async def run():
        task = asyncio.create_task(transcoder.transcode(fake_asset(60)))
        for _ in range(10):
            await asyncio.sleep(0)
        assert runtime.recorders and runtime.recorders[0].state == "recording"
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(run())
    assert runtime.handles_acquired == 1
    assert runtime.balanced


def test_choose_mime_type_prefers_codec_specific_type(runtime, transcoder):
    assert transcoder.choose_mime_type(MediaKind.AUDIO) == "audio/webm;codecs=opus"
    assert transcoder.choose_mime_type(MediaKind.VIDEO) == "video/webm;codecs=vp8,opus"


def test_natural_end_lets_the_recorder_finish(runtime, transcoder):
    asyncio.run(transcoder.transcode(fake_asset(12)))
    recorder = runtime.recorders[0]
    assert recorder.finish_calls == 1
    assert recorder.stop_calls == 0


def test_deadline_interrupts_the_recorder():
    runtime = FakeRuntime()
    transcoder = CaptureTranscoder(runtime, deadline_factory=runtime.deadline_factory, conversion_timeout=20)
    asyncio.run(transcoder.transcode(fake_asset(60)))
    recorder = runtime.recorders[0]
    assert recorder.stop_calls == 1
    assert recorder.finish_calls == 0


def test_extract_audio_from_video_records_audio_tracks_only(runtime, transcoder):
    output = asyncio.run(transcoder.extract_audio(fake_asset(12, "clip.mp4", "video/mp4")))

    assert output.filename == "clip_audio.webm"
    assert output.mime_type == "audio/webm;codecs=opus"
    assert parse_fake_media(output.payload) == 12
    recorder = runtime.recorders[0]
    assert [track.kind for track in recorder.stream.get_tracks()] == ["audio"]
    assert recorder.video_bits_per_second is None
    assert runtime.elements[0].muted is False
    assert runtime.tracks_acquired == 2
    assert runtime.balanced


def test_extract_audio_from_audio_is_a_reencode(runtime, transcoder):
    output = asyncio.run(transcoder.extract_audio(fake_asset(7, "hook.mp3", "audio/mpeg")))
    assert output.filename == "hook_audio.webm"
    assert output.mime_type == "audio/webm;codecs=opus"
    assert runtime.balanced


def test_extract_audio_without_audio_track(runtime, transcoder):
    runtime.no_audio_track = True
    with pytest.raises(NoAudioTrack, match="No audio track found in media file"):
        asyncio.run(transcoder.extract_audio(fake_asset(12, "silent.mp4", "video/mp4")))
    assert runtime.recorders == []
    assert runtime.tracks_acquired == 1
    assert runtime.balanced
