"""
Pytest configuration and shared fixtures.
"""
import pytest

from smart_preview.pipeline.preview_pipeline import PreviewPipeline
from smart_preview.services.transcoder import CaptureTranscoder
from smart_preview.services.trimmer import TimedTrimmer

from .fakes import FakeRuntime


@pytest.fixture
def runtime():
    return FakeRuntime()


@pytest.fixture
def pipeline(runtime):
    return PreviewPipeline(runtime, deadline_factory=runtime.deadline_factory)


@pytest.fixture
def transcoder(runtime):
    return CaptureTranscoder(runtime, deadline_factory=runtime.deadline_factory)


@pytest.fixture
def trimmer(runtime, transcoder):
    return TimedTrimmer(runtime, transcoder=transcoder)
