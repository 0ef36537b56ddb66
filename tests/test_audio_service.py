import pytest

from ielts_mock.models.backend import ListeningAudioDto
from ielts_mock.services import audio_service
from ielts_mock.services.audio_service import AudioPreload, preload_audio


def _probe(data: bytes) -> float:
    return float(data.decode("utf-8"))


def test_preload_sums_durations(backend) -> None:
    backend.audio = [ListeningAudioDto(id="a1", fileId="f1"), ListeningAudioDto(id="a2", fileId="f2")]
    backend.files = {"f1": b"300.4", "f2": b"420"}

    result = preload_audio(backend, backend.audio, part_count=2, probe=_probe)

    assert result.urls == [
        "https://backend.test/file/download/f1",
        "https://backend.test/file/download/f2",
    ]
    assert result.total_seconds == 720
    assert result.all_ready


def test_failed_file_counts_as_zero_seconds(backend) -> None:
    backend.audio = [ListeningAudioDto(id="a1", fileId="f1"), ListeningAudioDto(id="a2", fileId="missing")]
    backend.files = {"f1": b"100"}

    result = preload_audio(backend, backend.audio, part_count=2, probe=_probe)

    assert result.durations == [100.0, 0.0]
    assert result.total_seconds == 100
    assert result.failures == 1
    assert not result.all_ready


def test_unreadable_audio_counts_as_zero_seconds(backend) -> None:
    backend.audio = [ListeningAudioDto(id="a1", fileId="f1")]
    backend.files = {"f1": b"not audio at all"}

    result = preload_audio(backend, backend.audio, part_count=1)

    assert result.total_seconds == 0
    assert result.failures == 1


def test_extra_audio_files_are_ignored(backend) -> None:
    audio = [ListeningAudioDto(id=f"a{i}", fileId=f"f{i}") for i in range(3)]
    backend.files = {f"f{i}": b"60" for i in range(3)}

    result = preload_audio(backend, audio, part_count=2, probe=_probe)

    assert len(result.urls) == 2
    assert result.total_seconds == 120


def test_no_audio_files(backend) -> None:
    result = preload_audio(backend, [], part_count=4, probe=_probe)
    assert result == AudioPreload()
    assert result.total_seconds == 0


def test_probe_duration_rejects_unknown_format() -> None:
    with pytest.raises(ValueError):
        audio_service.probe_duration(b"plain bytes")
