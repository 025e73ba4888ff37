"""
Tests for media kind classification and playback capability mapping.
"""
import pytest

from smart_preview.domain.exceptions import InvalidAssetKind
from smart_preview.domain.media import MediaAsset, MediaKind, PlaybackCapability
from smart_preview.services.format_classifier import FormatClassifier, classify_asset

from .fakes import FakeRuntime


def asset(filename, mime_type):
    return MediaAsset(payload=b"", mime_type=mime_type, filename=filename)


@pytest.mark.parametrize(
    "filename, mime_type, expected",
    [
        ("song.mp3", "audio/mpeg", MediaKind.AUDIO),
        ("song.m4a", "audio/x-m4a", MediaKind.AUDIO),
        ("preview.webm", "audio/webm;codecs=opus", MediaKind.AUDIO),
        ("SONG.WAV", "", MediaKind.AUDIO),
        ("track.flac", "application/octet-stream", MediaKind.AUDIO),
        ("renamed.mp3", "text/plain", MediaKind.AUDIO),
        ("clip.mp4", "video/mp4", MediaKind.VIDEO),
        ("clip.bin", "video/x-something", MediaKind.VIDEO),
        ("clip.MOV", "", MediaKind.VIDEO),
        ("clip.webm", "video/webm;codecs=vp8,opus", MediaKind.VIDEO),
        ("notes.txt", "text/plain", MediaKind.UNSUPPORTED),
        ("noextension", "", MediaKind.UNSUPPORTED),
        ("archive.zip", "application/zip", MediaKind.UNSUPPORTED),
    ],
)
def test_classify(filename, mime_type, expected):
    assert FormatClassifier().classify(asset(filename, mime_type)) == expected


def test_declared_audio_mime_wins_over_video_extension():
    assert classify_asset(asset("recording.mp4", "audio/mp4")) == MediaKind.AUDIO


@pytest.mark.parametrize(
    "answer, expected",
    [
        ("probably", PlaybackCapability.CAN_PLAY_DIRECTLY),
        ("maybe", PlaybackCapability.MAY_PLAY),
        ("", PlaybackCapability.CANNOT_PLAY),
    ],
)
def test_capability_maps_runtime_answer(answer, expected):
    runtime = FakeRuntime(playable={"audio/ogg": answer})
    classifier = FormatClassifier(runtime)
    assert classifier.capability(asset("a.ogg", "audio/ogg")) == expected


def test_capability_of_unknown_or_empty_type_is_cannot_play():
    classifier = FormatClassifier(FakeRuntime())
    assert classifier.capability(asset("a.flac", "audio/flac")) == PlaybackCapability.CANNOT_PLAY
    assert classifier.capability(asset("a.mp3", "")) == PlaybackCapability.CANNOT_PLAY


def test_capability_needs_runtime():
    with pytest.raises(RuntimeError):
        FormatClassifier().capability(asset("a.mp3", "audio/mpeg"))


def test_capability_loads_nothing():
    runtime = FakeRuntime()
    FormatClassifier(runtime).capability(asset("a.mp3", "audio/mpeg"))
    assert runtime.handles_acquired == 0
    assert runtime.elements == []


@pytest.mark.parametrize(
    "filename, mime_type, accepted",
    [
        ("beat.mp3", "audio/mpeg", True),
        ("beat.wav", "", True),
        ("beat.M4A", "audio/x-m4a", True),
        ("beat.ogg", "audio/ogg", False),
        ("beat.flac", "audio/flac", False),
        ("beat.mp3", "text/plain", False),
        ("beat.mp3", "video/mp4", False),
    ],
)
def test_submission_allow_list_is_stricter(filename, mime_type, accepted):
    assert FormatClassifier.is_submission_audio(asset(filename, mime_type)) is accepted


def test_validate_submission_message():
    with pytest.raises(InvalidAssetKind, match="Received: audio/ogg"):
        FormatClassifier().validate_submission(asset("beat.ogg", "audio/ogg"))
    with pytest.raises(InvalidAssetKind, match="unknown type"):
        FormatClassifier().validate_submission(asset("beat.txt", ""))
