"""Service that fetches a section's parts and turns them into domain objects."""
import logging
from dataclasses import dataclass, field
from typing import Any

from ielts_mock.config import CONTENT_MAX_DEPTH
from ielts_mock.models.content import ListeningPart, ReadingPart, SectionType, WritingTask
from ielts_mock.services.audio_service import AudioPreload, DurationProbe, preload_audio, probe_duration
from ielts_mock.services.backend_client import BackendClient, BackendError
from ielts_mock.services.content_service import (
    transform_listening_part,
    transform_listening_parts,
    transform_reading_part,
    transform_reading_parts,
    transform_writing_task,
    transform_writing_tasks,
)
from ielts_mock.services.envelope_service import ContentView, TaggedContent, load_part_content

logger = logging.getLogger(__name__)


@dataclass
class LoadedSection:
    """Normalized content of one section."""

    section_type: SectionType
    parts: list[ListeningPart | ReadingPart] = field(default_factory=list)
    tasks: list[WritingTask] = field(default_factory=list)
    audio: AudioPreload | None = None
    skipped_parts: list[str] = field(default_factory=list)


def fetch_part_contents(
    client: BackendClient,
    section_id: str,
    view: ContentView = "user",
) -> tuple[list[TaggedContent], list[str]]:
    """Fetch and unwrap the content of every part of a section, in order.

    A part that fails to load keeps its position as empty content so later
    parts stay aligned with their numbers and audio files; its id is
    reported back.
    """
    admin = view == "admin"
    contents: list[TaggedContent] = []
    skipped: list[str] = []
    for part in client.get_all_parts(section_id, admin=admin):
        try:
            raw = client.get_part_question_content(part.id, admin=admin)
        except BackendError as exc:
            logger.warning("Skipping part %s of section %s: %s", part.id, section_id, exc)
            skipped.append(part.id)
            contents.append(TaggedContent(kind="empty", view=view))
            continue
        tagged = load_part_content(raw, prefer=view, max_depth=CONTENT_MAX_DEPTH)
        if tagged.is_empty:
            logger.info("Part %s of section %s has no content", part.id, section_id)
        contents.append(tagged)
    return contents, skipped


def load_section(
    client: BackendClient,
    test_id: str,
    section_id: str,
    section_type: SectionType,
    view: ContentView = "user",
    probe: DurationProbe = probe_duration,
) -> LoadedSection:
    """Load and normalize a Listening, Reading or Writing section."""
    contents, skipped = fetch_part_contents(client, section_id, view)
    loaded = LoadedSection(section_type=section_type, skipped_parts=skipped)

    if section_type == SectionType.LISTENING:
        audio_files = client.get_all_listening_audio(test_id, admin=view == "admin")
        loaded.audio = preload_audio(client, audio_files, len(contents), probe=probe)
        loaded.parts = list(transform_listening_parts(contents, loaded.audio.urls))
    elif section_type == SectionType.READING:
        loaded.parts = list(transform_reading_parts(contents))
    elif section_type == SectionType.WRITING:
        loaded.tasks = transform_writing_tasks(contents)
    else:
        raise ValueError(f"Unsupported section type: {section_type.value}")

    logger.info(
        "Loaded %s section %s: %s part(s), %s task(s), %s skipped",
        section_type.value,
        section_id,
        len(loaded.parts),
        len(loaded.tasks),
        len(skipped),
    )
    return loaded


def transform_part(
    tagged: TaggedContent | dict[str, Any] | None,
    section_type: SectionType,
    number: int = 1,
) -> ListeningPart | ReadingPart | WritingTask:
    """Transform a single part's content for the given section type."""
    if section_type == SectionType.LISTENING:
        return transform_listening_part(tagged, number)
    if section_type == SectionType.READING:
        return transform_reading_part(tagged, number)
    if section_type == SectionType.WRITING:
        return transform_writing_task(tagged, number)
    raise ValueError(f"Unsupported section type: {section_type.value}")
