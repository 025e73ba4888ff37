from datetime import timedelta

import yaml

from smart_preview.domain.media import MediaAsset, PipelineResult
from smart_preview.services.logging_service import ErrorLog, SuccessLog


def test_success_log_writes_numbered_yaml_entries(tmp_path):
    log = SuccessLog(tmp_path)
    source = MediaAsset(b"x" * 2048, "audio/wav", "take1.wav")
    result = PipelineResult(
        asset=source.renamed("_30s", "webm", "audio/webm;codecs=opus", b"y" * 1024),
        source=source,
        duration=90,
    )

    log.write(SuccessLog.entry_for(result, timedelta(seconds=31), 30))
    log.write({"source": "second.mp3"})

    assert log.log_file_path.name.startswith("log_")
    assert log.log_file_path.suffix == ".yaml"
    entries = yaml.safe_load(log.log_file_path.read_text(encoding="utf-8"))
    assert [e["index"] for e in entries] == [1, 2]
    first = entries[0]
    assert first["source"] == "take1.wav"
    assert first["output"] == "take1_30s.webm"
    assert first["output_size"] == "1 KB"
    assert first["probed_duration_seconds"] == 90
    assert first["limit_seconds"] == 30
    assert first["elapsed"] == "00:00:31"
    assert first["notes"] == []


def test_success_log_ignores_non_dict(tmp_path):
    log = SuccessLog(tmp_path)
    log.write("not an entry")
    assert not log.log_file_path.exists()


def test_error_log_appends(tmp_path):
    log = ErrorLog(tmp_path)
    log.write("File: a.mp3", "Error: DecodeError")
    log.write("File: b.mp3")
    log.write()

    content = (tmp_path / "error.txt").read_text(encoding="utf-8")
    assert content.count(ErrorLog.linesep_marker) == 2
    assert content.index("a.mp3") < content.index("b.mp3")
