"""Service layer turning stored part content into numbered domain parts.

Part content arrives in one of two shapes:

* a flat, already-numbered ``questions`` array, or
* nested ``questionGroups``, each with a ``range`` string such as ``"14-20"``
  and a list of raw question entries.

Both are flattened into one ordered list of :class:`Question` records whose
``id`` is the absolute question number.
"""
import logging
import re
from typing import Any, Iterable

from ielts_mock.config import DEFAULT_QUESTION_RANGE, WRITING_TASK_DEFAULTS
from ielts_mock.models.content import (
    ListeningPart,
    Question,
    QuestionType,
    ReadingPart,
    ReadingSection,
    WritingTask,
)
from ielts_mock.services.envelope_service import TaggedContent
from ielts_mock.utils.json_utils import normalize_array_maybe_string_or_object
from ielts_mock.utils.urls import normalize_image_url

logger = logging.getLogger(__name__)

RANGE_PATTERN = re.compile(r"^(\d+)-(\d+)$")
_DASHES = str.maketrans({"–": "-", "—": "-"})

# Reading renders these as a plain gap-fill input
_READING_FILL_TYPES = {
    QuestionType.SENTENCE_COMPLETION.value,
    QuestionType.SUMMARY_COMPLETION.value,
    QuestionType.SHORT_ANSWER.value,
}
_READING_KNOWN_TYPES = {t.value for t in QuestionType} - _READING_FILL_TYPES


def parse_range(value: Any) -> tuple[int, int] | None:
    """Parse a ``"start-end"`` range string."""
    if not isinstance(value, str):
        return None
    cleaned = re.sub(r"\s*-\s*", "-", value.strip().translate(_DASHES))
    match = RANGE_PATTERN.match(cleaned)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _question_number(question: dict[str, Any]) -> int | None:
    number = _as_int(question.get("questionNumber"))
    if number is None:
        number = _as_int(question.get("id"))
    return number


def _group_questions(group: dict[str, Any]) -> list[dict[str, Any]]:
    items = []
    for item in normalize_array_maybe_string_or_object(group.get("questions")):
        if isinstance(item, dict):
            items.append(item)
        elif isinstance(item, str):
            items.append({"text": item})
    return items


def _groups(content: dict[str, Any]) -> list[dict[str, Any]]:
    return [
        g
        for g in normalize_array_maybe_string_or_object(content.get("questionGroups"))
        if isinstance(g, dict)
    ]


def _split_lines(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(v).strip() for v in value if v is not None and str(v).strip()]
    if isinstance(value, str):
        return [line.strip() for line in value.split("\n") if line.strip()]
    return []


def _options(question: dict[str, Any], group: dict[str, Any] | None = None) -> list[str] | None:
    options = _split_lines(question.get("options"))
    if not options:
        options = [
            str(question[key]).strip()
            for key in ("optionA", "optionB", "optionC", "optionD")
            if question.get(key)
        ]
    if not options and group is not None:
        options = _split_lines(group.get("options") or group.get("matrixOptions"))
    return options or None


def _correct_answer(question: dict[str, Any]) -> str | list[str] | None:
    answers = question.get("correctAnswers")
    if isinstance(answers, list) and answers:
        return [str(a) for a in answers]
    answer = question.get("correctAnswer")
    if answer is None or answer == "":
        return None
    return str(answer)


def _image_url(*sources: dict[str, Any] | None) -> str | None:
    for source in sources:
        if not source:
            continue
        for key in ("imageUrl", "imageId", "image"):
            url = normalize_image_url(source.get(key))
            if url:
                return url
    return None


def calculate_question_range(groups: Iterable[dict[str, Any]]) -> tuple[int, int]:
    """Overall question range of a part from its groups' ranges and numbers."""
    low: int | None = None
    high: int | None = None
    for group in groups:
        bounds = parse_range(group.get("range"))
        if bounds:
            low = bounds[0] if low is None else min(low, bounds[0])
            high = bounds[1] if high is None else max(high, bounds[1])
        for question in _group_questions(group):
            number = _as_int(question.get("questionNumber"))
            if number is not None:
                low = number if low is None else min(low, number)
                high = number if high is None else max(high, number)
    if low is None or high is None:
        return DEFAULT_QUESTION_RANGE
    return low, high


def build_question_text(
    group: dict[str, Any], question: dict[str, Any], index: int, embed_options: bool = True
) -> str:
    """Question text; the group instruction leads the first question only."""
    lines: list[str] = []
    instruction = group.get("instruction")
    if index == 0 and instruction:
        lines.append(str(instruction))
        lines.append("")
    if question.get("text"):
        lines.append(str(question["text"]))
    options = _split_lines(question.get("options"))
    if embed_options and options:
        lines.append("")
        for opt_index, option in enumerate(options):
            lines.append(f"{chr(65 + opt_index)}. {option}")
    return "\n".join(lines)


def _reading_type(group_type: str) -> str:
    if group_type in _READING_KNOWN_TYPES:
        return group_type
    return QuestionType.FILL_IN_BLANK.value


def _max_answers(group_type: str, question: dict[str, Any], group: dict[str, Any]) -> int | None:
    if group_type == QuestionType.MULTIPLE_CHOICE.value:
        return _as_int(group.get("maxAnswers")) or 1
    if group_type == QuestionType.MULTIPLE_CORRECT_ANSWERS.value:
        answers = question.get("correctAnswers")
        if isinstance(answers, list) and answers:
            return len(answers)
        return _as_int(group.get("maxAnswers"))
    return None


def _match_heading_group(
    group: dict[str, Any], items: list[dict[str, Any]], start: int, include_answers: bool
) -> tuple[list[Question], list[ReadingSection]]:
    headings = _split_lines(group.get("headingOptions"))
    if not headings and items:
        headings = _split_lines(items[0].get("headingOptions"))

    questions: list[Question] = []
    sections: list[ReadingSection] = []
    for index, item in enumerate(items):
        number = _as_int(item.get("sectionNumber")) or _question_number(item) or start + index
        if item.get("content"):
            sections.append(ReadingSection(number=number, content=str(item["content"])))
        questions.append(
            Question(
                id=number,
                type=QuestionType.MATCH_HEADING.value,
                text=f"Section {number}",
                options=headings or None,
                correctAnswer=_correct_answer(item) if include_answers else None,
            )
        )
    return questions, sections


def flatten_question_groups(
    groups: list[dict[str, Any]],
    include_answers: bool = False,
    reading: bool = False,
) -> tuple[list[Question], list[ReadingSection]]:
    """Flatten question groups into absolutely numbered questions.

    Each group's range start seeds sequential ids; an explicit
    ``questionNumber`` wins. A malformed range restarts numbering at 1. A
    group without a range continues after the previous question.
    """
    questions: list[Question] = []
    sections: list[ReadingSection] = []

    for group in groups:
        group_type = str(group.get("type") or QuestionType.FILL_IN_BLANK.value)
        raw_range = group.get("range")
        bounds = parse_range(raw_range)
        if bounds is not None:
            start = bounds[0]
        elif raw_range:
            logger.warning("Malformed question range %r, numbering group from 1", raw_range)
            start = 1
        else:
            start = questions[-1].id + 1 if questions else 1

        items = _group_questions(group)
        if not items:
            questions.append(
                Question(
                    id=start,
                    type=_reading_type(group_type) if reading else group_type,
                    text=str(group.get("instruction") or ""),
                    imageUrl=_image_url(group),
                )
            )
            continue

        if group_type == QuestionType.MATCH_HEADING.value:
            heading_questions, heading_sections = _match_heading_group(
                group, items, start, include_answers
            )
            questions.extend(heading_questions)
            sections.extend(heading_sections)
            continue

        question_type = _reading_type(group_type) if reading else group_type
        for index, item in enumerate(items):
            questions.append(
                Question(
                    id=_as_int(item.get("questionNumber")) or start + index,
                    type=question_type,
                    text=build_question_text(group, item, index, embed_options=not reading),
                    options=_options(item, group),
                    imageUrl=_image_url(item, group if index == 0 else None),
                    correctAnswer=_correct_answer(item) if include_answers else None,
                    maxAnswers=_max_answers(group_type, item, group),
                )
            )

    return questions, sections


def _flat_questions(
    raw_questions: list[Any],
    question_range: tuple[int, int],
    include_answers: bool,
) -> list[Question]:
    questions = []
    for index, item in enumerate(raw_questions):
        if isinstance(item, str):
            item = {"text": item}
        if not isinstance(item, dict):
            continue
        questions.append(
            Question(
                id=_question_number(item) or question_range[0] + index,
                type=str(item.get("type") or QuestionType.FILL_IN_BLANK.value),
                text=str(item.get("text") or ""),
                options=_options(item),
                imageUrl=_image_url(item),
                correctAnswer=_correct_answer(item) if include_answers else None,
                maxAnswers=_as_int(item.get("maxAnswers")),
            )
        )
    return questions


def _explicit_range(content: dict[str, Any]) -> tuple[int, int] | None:
    value = content.get("questionRange")
    if isinstance(value, (list, tuple)) and len(value) == 2:
        low, high = _as_int(value[0]), _as_int(value[1])
        if low is not None and high is not None:
            return low, high
    return parse_range(value)


def resolve_questions(
    content: dict[str, Any], include_answers: bool = False, reading: bool = False
) -> tuple[tuple[int, int], list[Question], list[ReadingSection]]:
    """Question range, flattened questions and heading sections of a part."""
    groups = _groups(content)
    raw_questions = normalize_array_maybe_string_or_object(content.get("questions"))

    if raw_questions:
        if groups:
            question_range = calculate_question_range(groups)
        else:
            numbers = [
                n
                for n in (_question_number(q) for q in raw_questions if isinstance(q, dict))
                if n is not None
            ]
            if numbers:
                question_range = (min(numbers), max(numbers))
            else:
                question_range = _explicit_range(content) or DEFAULT_QUESTION_RANGE
        questions = _flat_questions(raw_questions, question_range, include_answers)
        return question_range, questions, []

    questions, sections = flatten_question_groups(groups, include_answers, reading)
    if groups:
        question_range = calculate_question_range(groups)
    else:
        question_range = _explicit_range(content) or DEFAULT_QUESTION_RANGE
    return question_range, questions, sections


def _unwrap(content: TaggedContent | dict[str, Any] | None) -> tuple[dict[str, Any], bool]:
    if isinstance(content, TaggedContent):
        return content.content, content.has_answers
    return content or {}, False


def transform_listening_part(
    content: TaggedContent | dict[str, Any] | None,
    part_number: int,
    audio_url: str = "",
) -> ListeningPart:
    """Build a listening part from its stored content."""
    data, include_answers = _unwrap(content)
    question_range, questions, _ = resolve_questions(data, include_answers)
    return ListeningPart(
        id=part_number,
        title=str(data.get("title") or f"Part {part_number}"),
        instruction=str(data.get("instruction") or ""),
        questionRange=question_range,
        audioUrl=audio_url or "",
        questions=questions,
    )


def transform_reading_part(
    content: TaggedContent | dict[str, Any] | None,
    part_number: int,
) -> ReadingPart:
    """Build a reading part (passage, heading sections, questions)."""
    data, include_answers = _unwrap(content)
    question_range, questions, heading_sections = resolve_questions(
        data, include_answers, reading=True
    )

    sections = [
        ReadingSection(number=int(s["number"]), content=str(s.get("content") or ""))
        for s in normalize_array_maybe_string_or_object(data.get("sections"))
        if isinstance(s, dict) and _as_int(s.get("number")) is not None
    ]
    sections.extend(heading_sections)

    return ReadingPart(
        id=part_number,
        title=str(data.get("title") or f"Part {part_number}"),
        instruction=str(data.get("instruction") or ""),
        passage=str(data.get("passage") or ""),
        imageUrl=_image_url(data),
        sections=sections or None,
        questionRange=question_range,
        questions=questions,
    )


def _writing_question_text(data: dict[str, Any]) -> str:
    question = data.get("question")
    if isinstance(question, str) and question.strip():
        return question
    passage = data.get("passage")
    if isinstance(passage, str) and passage.strip():
        return passage
    groups = _groups(data)
    if groups:
        first = groups[0]
        texts = [str(q["text"]) for q in _group_questions(first) if q.get("text")]
        if texts:
            return "\n".join(texts)
        if first.get("instruction"):
            return str(first["instruction"])
    if data.get("instruction"):
        return str(data["instruction"])
    return ""


def transform_writing_task(
    content: TaggedContent | dict[str, Any] | None,
    task_number: int,
) -> WritingTask:
    """Build a writing task, filling IELTS defaults for time and length."""
    data, _ = _unwrap(content)
    default_minutes, default_words = WRITING_TASK_DEFAULTS.get(
        task_number, WRITING_TASK_DEFAULTS[2]
    )
    return WritingTask(
        id=task_number,
        title=str(data.get("title") or f"Task {task_number}"),
        timeMinutes=_as_int(data.get("timeMinutes")) or default_minutes,
        minWords=_as_int(data.get("minWords")) or default_words,
        instruction=str(data.get("instruction") or ""),
        question=_writing_question_text(data)
        or "Write your response based on the task instructions.",
        image=_image_url(data),
    )


def transform_listening_parts(
    parts: list[TaggedContent], audio_urls: list[str] | None = None
) -> list[ListeningPart]:
    audio_urls = audio_urls or []
    return [
        transform_listening_part(
            content, index + 1, audio_urls[index] if index < len(audio_urls) else ""
        )
        for index, content in enumerate(parts)
    ]


def transform_reading_parts(parts: list[TaggedContent]) -> list[ReadingPart]:
    return [transform_reading_part(content, index + 1) for index, content in enumerate(parts)]


def transform_writing_tasks(parts: list[TaggedContent]) -> list[WritingTask]:
    return [transform_writing_task(content, index + 1) for index, content in enumerate(parts)]
