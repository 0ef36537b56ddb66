"""Service for preloading listening audio and measuring its duration."""
import io
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable

import mutagen
from mutagen import MutagenError

from ielts_mock.config import AUDIO_PRELOAD_WORKERS
from ielts_mock.models.backend import ListeningAudioDto
from ielts_mock.services.backend_client import BackendClient, BackendError

logger = logging.getLogger(__name__)

DurationProbe = Callable[[bytes], float]


@dataclass
class AudioPreload:
    """Result of preloading the audio files of a listening section."""

    urls: list[str] = field(default_factory=list)
    durations: list[float] = field(default_factory=list)
    failures: int = 0

    @property
    def total_seconds(self) -> int:
        return int(round(sum(self.durations)))

    @property
    def all_ready(self) -> bool:
        return self.failures == 0


def probe_duration(data: bytes) -> float:
    """Read the playing time of an audio file from its bytes."""
    audio = mutagen.File(io.BytesIO(data))
    if audio is None or audio.info is None:
        raise ValueError("Unrecognized audio format")
    return float(audio.info.length)


def _load_one(client: BackendClient, url: str, probe: DurationProbe) -> float:
    try:
        return probe(client.download(url))
    except (BackendError, MutagenError, ValueError) as exc:
        # Broken files count as silent
        logger.warning("Failed to preload audio %s: %s", url, exc)
        return -1.0


def preload_audio(
    client: BackendClient,
    audio_files: list[ListeningAudioDto],
    part_count: int,
    probe: DurationProbe = probe_duration,
    workers: int = AUDIO_PRELOAD_WORKERS,
) -> AudioPreload:
    """Download and probe audio files concurrently, one per listening part.

    Audio files are matched to parts by position. Every file is awaited; a
    failed file contributes a zero-second placeholder.
    """
    urls: list[str] = []
    for audio in audio_files[:part_count]:
        urls.append(client.file_download_url(audio.fileId) if audio.fileId else "")

    targets = [url for url in urls if url]
    if not targets:
        return AudioPreload(urls=urls)

    with ThreadPoolExecutor(max_workers=max(1, workers), thread_name_prefix="audio_preload") as pool:
        results = list(pool.map(lambda url: _load_one(client, url, probe), targets))

    failures = sum(1 for r in results if r < 0)
    durations = [max(r, 0.0) for r in results]
    logger.info(
        "Preloaded %s audio file(s), %s failed, total %.1fs",
        len(targets),
        failures,
        sum(durations),
    )
    return AudioPreload(urls=urls, durations=durations, failures=failures)
