from ielts_mock.config import BACKEND_BASE_URL
from ielts_mock.services import content_service
from ielts_mock.services.envelope_service import TaggedContent, load_part_content


def _group(range_: str | None, count: int, **extra: object) -> dict[str, object]:
    group: dict[str, object] = {
        "type": "FILL_IN_BLANK",
        "questions": [{"text": f"q{i}"} for i in range(count)],
    }
    if range_ is not None:
        group["range"] = range_
    group.update(extra)
    return group


def test_parse_range_accepts_spaces_and_dashes() -> None:
    assert content_service.parse_range("14-20") == (14, 20)
    assert content_service.parse_range(" 1 - 5 ") == (1, 5)
    assert content_service.parse_range("1–3") == (1, 3)
    assert content_service.parse_range("1 to 3") is None
    assert content_service.parse_range(None) is None


def test_groups_partitioning_range_are_numbered_in_order() -> None:
    groups = [_group("1-4", 4), _group("5-7", 3), _group("8-10", 3)]
    questions, _ = content_service.flatten_question_groups(groups)
    assert [q.id for q in questions] == list(range(1, 11))


def test_flat_questions_take_ids_from_question_range() -> None:
    content = {"questionRange": [14, 20], "questions": [{"text": f"t{i}"} for i in range(7)]}
    question_range, questions, _ = content_service.resolve_questions(content)
    assert question_range == (14, 20)
    assert [q.id for q in questions] == list(range(14, 21))
    assert [q.text for q in questions] == [f"t{i}" for i in range(7)]


def test_flat_questions_range_from_explicit_ids() -> None:
    content = {"questions": [{"id": 3, "text": "a"}, {"id": 4, "text": "b"}]}
    question_range, questions, _ = content_service.resolve_questions(content)
    assert question_range == (3, 4)
    assert [q.id for q in questions] == [3, 4]


def test_flat_questions_default_range() -> None:
    question_range, questions, _ = content_service.resolve_questions({"questions": ["a", "b"]})
    assert question_range == (1, 10)
    assert [q.id for q in questions] == [1, 2]


def test_group_instruction_leads_first_question_only() -> None:
    group = _group("1-2", 2, instruction="Write ONE WORD ONLY")
    questions, _ = content_service.flatten_question_groups([group])
    assert questions[0].text == "Write ONE WORD ONLY\n\nq0"
    assert questions[1].text == "q1"


def test_malformed_range_restarts_numbering_at_one() -> None:
    groups = [_group("11-12", 2), _group("11 to 13", 1)]
    questions, _ = content_service.flatten_question_groups(groups)
    assert [q.id for q in questions] == [11, 12, 1]


def test_missing_range_continues_numbering() -> None:
    groups = [_group("5-6", 2), _group(None, 2)]
    questions, _ = content_service.flatten_question_groups(groups)
    assert [q.id for q in questions] == [5, 6, 7, 8]


def test_empty_group_becomes_single_question() -> None:
    group = {"type": "MAP_LABELING", "range": "5-5", "instruction": "Label the map", "imageId": "map1"}
    questions, _ = content_service.flatten_question_groups([group])
    assert len(questions) == 1
    assert questions[0].id == 5
    assert questions[0].text == "Label the map"
    assert questions[0].imageUrl == f"{BACKEND_BASE_URL}/file/download/map1"


def test_calculate_question_range() -> None:
    groups = [{"range": "14-16"}, {"range": "17-20"}]
    assert content_service.calculate_question_range(groups) == (14, 20)
    assert content_service.calculate_question_range([{"questions": []}]) == (1, 10)


def test_listening_embeds_options_in_text() -> None:
    group = {
        "type": "MULTIPLE_CHOICE",
        "range": "1-1",
        "questions": [{"text": "Where?", "options": "Park\nBeach"}],
    }
    part = content_service.transform_listening_part({"questionGroups": [group]}, 1)
    question = part.questions[0]
    assert question.text == "Where?\n\nA. Park\nB. Beach"
    assert question.options == ["Park", "Beach"]
    assert question.maxAnswers == 1


def test_reading_keeps_options_separate_and_maps_types() -> None:
    groups = [
        {
            "type": "MULTIPLE_CHOICE",
            "range": "1-1",
            "questions": [{"text": "Why?", "optionA": "One", "optionB": "Two"}],
        },
        {"type": "SENTENCE_COMPLETION", "range": "2-2", "questions": [{"text": "Fill"}]},
        {"type": "TRUE_FALSE_NOT_GIVEN", "range": "3-3", "questions": [{"text": "True?"}]},
        {"type": "SOMETHING_NEW", "range": "4-4", "questions": [{"text": "?"}]},
    ]
    part = content_service.transform_reading_part({"questionGroups": groups, "passage": "Text"}, 2)
    assert part.id == 2
    assert part.title == "Part 2"
    assert part.passage == "Text"
    assert part.questions[0].text == "Why?"
    assert part.questions[0].options == ["One", "Two"]
    assert [q.type for q in part.questions] == [
        "MULTIPLE_CHOICE",
        "FILL_IN_BLANK",
        "TRUE_FALSE_NOT_GIVEN",
        "FILL_IN_BLANK",
    ]


def test_multiple_correct_answers_limit() -> None:
    group = {
        "type": "MULTIPLE_CORRECT_ANSWERS",
        "range": "21-22",
        "questions": [{"text": "Choose TWO", "correctAnswers": ["A", "C"]}],
    }
    tagged = TaggedContent(kind="admin", content={"questionGroups": [group]}, view="admin")
    part = content_service.transform_listening_part(tagged, 3)
    assert part.questions[0].maxAnswers == 2
    assert part.questions[0].correctAnswer == ["A", "C"]


def test_answers_hidden_unless_content_carries_them() -> None:
    group = {"type": "FILL_IN_BLANK", "range": "1-1", "questions": [{"text": "x", "correctAnswer": "y"}]}
    user_part = content_service.transform_listening_part(
        TaggedContent(kind="user", content={"questionGroups": [group]}), 1
    )
    admin_part = content_service.transform_listening_part(
        TaggedContent(kind="admin", content={"questionGroups": [group]}, view="admin"), 1
    )
    assert user_part.questions[0].correctAnswer is None
    assert admin_part.questions[0].correctAnswer == "y"


def test_match_heading_group_builds_sections() -> None:
    group = {
        "type": "MATCH_HEADING",
        "range": "1-2",
        "headingOptions": "i. Origins\nii. Decline",
        "questions": [
            {"content": "Paragraph one", "correctAnswer": "ii"},
            {"content": "Paragraph two", "correctAnswer": "i"},
        ],
    }
    tagged = TaggedContent(kind="admin", content={"questionGroups": [group]}, view="admin")
    part = content_service.transform_reading_part(tagged, 1)
    assert [q.id for q in part.questions] == [1, 2]
    assert part.questions[0].text == "Section 1"
    assert part.questions[0].options == ["i. Origins", "ii. Decline"]
    assert part.questions[0].correctAnswer == "ii"
    assert [(s.number, s.content) for s in part.sections or []] == [
        (1, "Paragraph one"),
        (2, "Paragraph two"),
    ]


def test_image_urls_are_normalized() -> None:
    content = {
        "imageUrl": "http://localhost:8080/api/file/download/abc",
        "questions": [{"text": "x", "imageId": "img-1"}],
    }
    part = content_service.transform_reading_part(content, 1)
    assert part.imageUrl == f"{BACKEND_BASE_URL}/file/download/abc"
    assert part.questions[0].imageUrl == f"{BACKEND_BASE_URL}/file/download/img-1"


def test_quoted_listening_content_end_to_end() -> None:
    raw = (
        '"{\\"admin\\":{\\"questionGroups\\":[{\\"type\\":\\"FILL_IN_BLANK\\",'
        '\\"range\\":\\"1-3\\",\\"questions\\":[{\\"text\\":\\"a\\"},'
        '{\\"text\\":\\"b\\"},{\\"text\\":\\"c\\"}]}]}}"'
    )
    tagged = load_part_content(raw, max_depth=10)
    assert tagged.kind == "admin"

    part = content_service.transform_listening_part(tagged, 1, "https://audio/1.mp3")
    assert [q.id for q in part.questions] == [1, 2, 3]
    assert [q.text for q in part.questions] == ["a", "b", "c"]
    assert part.questionRange == (1, 3)
    assert part.audioUrl == "https://audio/1.mp3"


def test_writing_task_defaults() -> None:
    first = content_service.transform_writing_task(None, 1)
    assert first.timeMinutes == 20
    assert first.minWords == 150
    assert first.title == "Task 1"
    assert first.question == "Write your response based on the task instructions."

    second = content_service.transform_writing_task(
        {"question": "Discuss both views.", "minWords": "260"}, 2
    )
    assert second.timeMinutes == 40
    assert second.minWords == 260
    assert second.question == "Discuss both views."


def test_writing_question_falls_back_to_first_group() -> None:
    content = {"questionGroups": [{"questions": [{"text": "The chart shows"}]}]}
    task = content_service.transform_writing_task(content, 1)
    assert task.question == "The chart shows"


def test_part_lists_are_numbered_by_position() -> None:
    parts = [TaggedContent(kind="empty"), TaggedContent(kind="user", content={"title": "Intro"})]
    listening = content_service.transform_listening_parts(parts, ["u1"])
    assert [p.id for p in listening] == [1, 2]
    assert listening[0].audioUrl == "u1"
    assert listening[1].audioUrl == ""
    assert listening[1].title == "Intro"
    assert [t.id for t in content_service.transform_writing_tasks(parts)] == [1, 2]
