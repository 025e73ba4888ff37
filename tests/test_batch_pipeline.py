"""
Tests for the batch runner and the command line parsing that feeds it.
"""
import argparse
import asyncio

import pytest

from smart_preview.cli import get_args
from smart_preview.pipeline.batch_pipeline import BatchPreviewRunner

from .fakes import fake_media


def make_args(output_dir, **overrides):
    values = dict(
        output_dir=str(output_dir),
        limit=30,
        concurrency=2,
        random=False,
        validate_only=False,
        submission=False,
    )
    values.update(overrides)
    return argparse.Namespace(**values)


@pytest.fixture
def media_files(tmp_path):
    files = {
        "long": tmp_path / "long.mp3",
        "short": tmp_path / "short.mp3",
        "broken": tmp_path / "broken.mp3",
    }
    files["long"].write_bytes(fake_media(90))
    files["short"].write_bytes(fake_media(10))
    files["broken"].write_bytes(b"not media at all")
    return files


def test_batch_writes_previews_and_logs(runtime, pipeline, media_files, tmp_path):
    out = tmp_path / "out"
    runner = BatchPreviewRunner(pipeline, make_args(out))
    paths = [media_files["long"], media_files["short"], media_files["broken"]]

    results = asyncio.run(runner.run(paths))

    assert results[0].name == "long_30s.webm"
    assert results[1].name == "short.mp3"
    assert results[2] is None
    assert (out / "long_30s.webm").is_file()
    assert (out / "short.mp3").read_bytes() == fake_media(10)
    assert set(runner.succeeded) == {media_files["long"], media_files["short"]}
    assert runner.failed == [media_files["broken"]]
    assert "DecodeError" in (out / "error.txt").read_text(encoding="utf-8")
    assert len(list(out.glob("log_*.yaml"))) == 1
    assert runtime.balanced


def test_validate_only_writes_nothing(runtime, pipeline, media_files, tmp_path):
    out = tmp_path / "out"
    runner = BatchPreviewRunner(pipeline, make_args(out, validate_only=True))

    asyncio.run(runner.run([media_files["long"], media_files["short"]]))

    assert runner.succeeded == [media_files["short"]]
    assert runner.failed == [media_files["long"]]
    assert "DurationExceeded" in (out / "error.txt").read_text(encoding="utf-8")
    assert not list(out.glob("*.webm"))
    assert runtime.recorders == []


def test_submission_rejects_formats_outside_allow_list(runtime, pipeline, tmp_path):
    clip = tmp_path / "loop.ogg"
    clip.write_bytes(fake_media(5))
    runner = BatchPreviewRunner(pipeline, make_args(tmp_path / "out", submission=True))

    asyncio.run(runner.run([clip]))

    assert runner.failed == [clip]
    assert runtime.handles_acquired == 0


def test_get_args(media_files, tmp_path):
    args = get_args([str(media_files["long"]), "--limit", "30", "--concurrency", "3",
                     "--temp-work-dir", str(tmp_path / "tmp")])
    assert args.files == [media_files["long"]]
    assert args.limit == 30
    assert args.concurrency == 3
    assert args.temp_work_dir.is_dir()
    assert not args.validate_only


def test_get_args_rejects_missing_file(tmp_path):
    with pytest.raises(SystemExit):
        get_args([str(tmp_path / "missing.mp3")])


def test_get_args_rejects_non_positive_limit(media_files):
    with pytest.raises(SystemExit):
        get_args([str(media_files["short"]), "--limit", "0"])


def test_unified_player_flag_writes_audio_previews(runtime, pipeline, media_files, tmp_path):
    clip = tmp_path / "clip.mp4"
    clip.write_bytes(fake_media(12))
    out = tmp_path / "out"
    runner = BatchPreviewRunner(pipeline, make_args(out, unified_player=True, concurrency=1))

    results = asyncio.run(runner.run([media_files["long"], clip]))

    assert [path.name for path in results] == ["long_audio_30s.webm", "clip_audio.webm"]
    log_text = next(out.glob("log_*.yaml")).read_text(encoding="utf-8")
    assert "source_kind: video" in log_text
    assert runtime.balanced


def test_get_args_unified_player(media_files):
    args = get_args([str(media_files["short"]), "--unified-player", "--random"])
    assert args.unified_player
    assert args.random
