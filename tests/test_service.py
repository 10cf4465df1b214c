import random
from pathlib import Path

import pytest
from lxml import etree

from wordquiz.config import Settings
from wordquiz.lexicon import WordListLexicon
from wordquiz.models import MatchType, QuizSpecification, ResponseStatus
from wordquiz.service import QuizFileError, QuizService

WORDS = ["act", "cat", "dog", "god", "tea", "eat", "ate"]
PATTERN_SPEC = QuizSpecification(query_text="???", match_type=MatchType.PATTERN, use_alphagrams=True)


def _service() -> QuizService:
    return QuizService(WordListLexicon(WORDS), rng=random.Random(3))


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_start_quiz_builds_alphagram_questions() -> None:
    service = _service()
    assert service.start_quiz(PATTERN_SPEC) == 3
    assert service.engine.questions == ("ACT", "AET", "DGO")
    assert service.engine.effective_type is MatchType.ANAGRAM
    assert service.spec == PATTERN_SPEC


def test_respond_normalizes_case_and_whitespace() -> None:
    service = _service()
    service.start_quiz(PATTERN_SPEC)
    assert service.respond(" cat ") is ResponseStatus.CORRECT
    assert service.respond("CAT") is ResponseStatus.DUPLICATE
    assert service.respond("dog") is ResponseStatus.INCORRECT


def test_save_and_load_round_trip(tmp_path: Path) -> None:
    service = _service()
    service.start_quiz(PATTERN_SPEC)
    service.respond("cat")
    service.respond("tac")
    service.engine.next_question()
    service.respond("eat")

    path = tmp_path / "saves" / "quiz.xml"
    saved = service.save_quiz(path)
    assert saved.path == path
    assert saved.question_count == 3
    assert saved.question_index == 1
    assert saved.total_correct == 2

    root = etree.parse(str(path)).getroot()
    assert root.tag == "word-quiz"
    assert root.get("version") == "1"
    assert [item.text for item in root.iter("question")] == ["ACT", "AET", "DGO"]
    assert root.find("questions").get("effective-type") == "anagram"
    assert root.find("question-source").get("match-type") == "pattern"

    resumed = _service()
    summary = resumed.load_quiz(path)
    assert summary.question_index == 1
    assert summary.question_count == 3
    assert resumed.spec == PATTERN_SPEC
    assert resumed.engine.get_question() == "AET"
    assert resumed.engine.total_possible == service.engine.total_possible
    assert resumed.engine.total_correct == 2
    assert resumed.engine.total_incorrect == 1
    assert resumed.engine.snapshot() == service.engine.snapshot()


def test_resumed_quiz_remembers_answers_to_current_question(tmp_path: Path) -> None:
    service = QuizService(WordListLexicon(WORDS))
    service.start_quiz(QuizSpecification(query_text="act", match_type=MatchType.ANAGRAM))
    assert service.respond("act") is ResponseStatus.CORRECT
    assert service.respond("cat") is ResponseStatus.CORRECT

    path = service.save_quiz(tmp_path / "quiz.xml").path
    root = etree.parse(str(path)).getroot()
    assert [item.text for item in root.find("answered")] == ["ACT", "CAT"]

    resumed = QuizService(WordListLexicon(WORDS))
    resumed.load_quiz(path)
    assert resumed.engine.get_correct() == ["ACT", "CAT"]
    assert resumed.engine.get_missed() == []
    assert resumed.respond("act") is ResponseStatus.DUPLICATE
    assert resumed.engine.total_correct == 2
    assert resumed.engine.total_correct <= resumed.engine.total_possible


def test_answered_words_outside_the_current_question_are_ignored(tmp_path: Path) -> None:
    body = (
        '<word-quiz version="1"><question-source query="act" match-type="anagram"/>'
        '<questions effective-type="anagram"><question>ACT</question></questions>'
        '<progress correct="1"/><answered><word>CAT</word><word>DOG</word></answered></word-quiz>'
    )
    service = _service()
    service.load_quiz(_write(tmp_path / "quiz.xml", body))
    assert service.engine.get_correct() == ["CAT"]
    assert service.respond("cat") is ResponseStatus.DUPLICATE
    assert service.respond("act") is ResponseStatus.CORRECT


def test_save_without_active_quiz_fails(tmp_path: Path) -> None:
    with pytest.raises(QuizFileError, match="no active quiz"):
        _service().save_quiz(tmp_path / "quiz.xml")


def test_load_missing_or_invalid_file(tmp_path: Path) -> None:
    service = _service()
    with pytest.raises(QuizFileError, match="Could not read"):
        service.load_quiz(tmp_path / "missing.xml")
    with pytest.raises(QuizFileError, match="not valid XML"):
        service.load_quiz(_write(tmp_path / "broken.xml", "<word-quiz>"))


@pytest.mark.parametrize(
    ("body", "message"),
    [
        ("<quiz/>", "Expected <word-quiz>"),
        ('<word-quiz version="9"/>', "newer than supported"),
        ('<word-quiz version="x"/>', "invalid version"),
        ('<word-quiz version="1"><question-source query="act" match-type="anagram"/></word-quiz>', "missing"),
        (
            '<word-quiz version="1"><question-source query="act" match-type="crossword"/>'
            '<questions effective-type="anagram"><question>ACT</question></questions>'
            "<progress/></word-quiz>",
            "Unknown match type",
        ),
        (
            '<word-quiz version="1"><question-source query="act" match-type="anagram" alphagrams="maybe"/>'
            '<questions effective-type="anagram"><question>ACT</question></questions>'
            "<progress/></word-quiz>",
            "true or false",
        ),
        (
            '<word-quiz version="1"><question-source query="act" match-type="anagram"/>'
            '<questions effective-type="anagram"/><progress/></word-quiz>',
            "no usable questions",
        ),
        (
            '<word-quiz version="1"><question-source query="act" match-type="anagram"/>'
            '<questions effective-type="anagram"><question>ACT</question></questions>'
            '<progress><missed-responses><response word="CAT"/></missed-responses></progress></word-quiz>',
            "progress section is malformed",
        ),
        (
            '<word-quiz version="1"><question-source query="act" match-type="anagram"/>'
            '<questions effective-type="anagram"><question>ACT</question></questions>'
            '<progress question="4"/></word-quiz>',
            "out of range",
        ),
        (
            '<word-quiz version="1"><question-source query="act" match-type="anagram"/>'
            '<questions effective-type="anagram"><question>ACT</question></questions>'
            "<progress/><answered><word/></answered></word-quiz>",
            "empty answered word",
        ),
    ],
)
def test_load_rejects_bad_quiz_files(tmp_path: Path, body: str, message: str) -> None:
    service = _service()
    service.start_quiz(PATTERN_SPEC)
    service.respond("act")
    with pytest.raises(QuizFileError, match=message):
        service.load_quiz(_write(tmp_path / "bad.xml", body))
    assert service.spec == PATTERN_SPEC
    assert service.engine.get_question() == "ACT"
    assert service.engine.total_correct == 1


def test_from_settings_uses_configured_word_list(tmp_path: Path) -> None:
    path = _write(tmp_path / "words.txt", "zax\nzas\n")
    service = QuizService.from_settings(Settings(word_list=path))
    assert service.lexicon.match_pattern("za?") == ["ZAS", "ZAX"]


def test_from_settings_falls_back_to_bundled_list() -> None:
    service = QuizService.from_settings(Settings())
    assert service.lexicon.match_anagram("god") == ["DOG", "GOD"]
