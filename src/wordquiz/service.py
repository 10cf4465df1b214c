"""Application service for running, saving and resuming quizzes."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from pathlib import Path

from lxml import etree

from .config import Settings
from .engine import QuizEngine
from .lexicon import Lexicon, load_default_word_list, load_word_list
from .models import MatchType, QuizSpecification, ResponseStatus
from .progress import XML_TOP_ELEMENT, QuizProgress

logger = logging.getLogger(__name__)

QUIZ_FILE_VERSION = 1

XML_QUIZ_ELEMENT = "word-quiz"
XML_VERSION_ATTR = "version"
XML_SOURCE_ELEMENT = "question-source"
XML_SOURCE_QUERY_ATTR = "query"
XML_SOURCE_TYPE_ATTR = "match-type"
XML_SOURCE_ALPHAGRAMS_ATTR = "alphagrams"
XML_SOURCE_RANDOM_ATTR = "random-order"
XML_QUESTIONS_ELEMENT = "questions"
XML_QUESTIONS_TYPE_ATTR = "effective-type"
XML_QUESTION_ELEMENT = "question"
XML_ANSWERED_ELEMENT = "answered"
XML_ANSWERED_WORD_ELEMENT = "word"


class QuizFileError(ValueError):
    """A saved quiz file cannot be read back."""


@dataclass(frozen=True)
class QuizFileSummary:
    """Summary emitted by quiz save/load operations."""

    path: Path
    question_count: int
    question_index: int
    total_correct: int


class QuizService:
    """Coordinates a lexicon, the quiz engine and saved quiz files."""

    def __init__(self, lexicon: Lexicon, rng: random.Random | None = None) -> None:
        """Initialize service around an existing lexicon."""
        self.lexicon = lexicon
        self.engine = QuizEngine(lexicon, rng=rng)
        self.spec: QuizSpecification | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> QuizService:
        """Create a service using the configured or bundled word list."""
        if settings.word_list is not None:
            lexicon: Lexicon = load_word_list(settings.word_list)
        else:
            lexicon = load_default_word_list()
        return cls(lexicon)

    def start_quiz(self, spec: QuizSpecification) -> int:
        """Start a new quiz and return its question count."""
        self.engine.new_quiz(spec)
        self.spec = spec
        return self.engine.num_questions

    def respond(self, response: str) -> ResponseStatus:
        """Score one response, normalized to the lexicon's upper-case words."""
        return self.engine.respond(response.strip().upper())

    def save_quiz(self, path: Path | str) -> QuizFileSummary:
        """Write the quiz definition, question order and progress to a file."""
        if self.spec is None or not self.engine.has_questions:
            raise QuizFileError("There is no active quiz to save.")

        root = etree.Element(XML_QUIZ_ELEMENT)
        root.set(XML_VERSION_ATTR, str(QUIZ_FILE_VERSION))
        source = etree.SubElement(root, XML_SOURCE_ELEMENT)
        source.set(XML_SOURCE_QUERY_ATTR, self.spec.query_text)
        source.set(XML_SOURCE_TYPE_ATTR, self.spec.match_type.value)
        source.set(XML_SOURCE_ALPHAGRAMS_ATTR, _format_bool(self.spec.use_alphagrams))
        source.set(XML_SOURCE_RANDOM_ATTR, _format_bool(self.spec.random_order))
        questions = etree.SubElement(root, XML_QUESTIONS_ELEMENT)
        questions.set(XML_QUESTIONS_TYPE_ATTR, self.engine.effective_type.value)
        for question in self.engine.questions:
            etree.SubElement(questions, XML_QUESTION_ELEMENT).text = question
        progress = self.engine.snapshot()
        root.append(progress.serialize())
        answered = etree.SubElement(root, XML_ANSWERED_ELEMENT)
        for word in self.engine.get_correct():
            etree.SubElement(answered, XML_ANSWERED_WORD_ELEMENT).text = word

        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(etree.tostring(root, pretty_print=True, xml_declaration=True, encoding="UTF-8"))
        logger.info("Saved quiz to %s at question %d", target, progress.question + 1)
        return QuizFileSummary(
            path=target,
            question_count=self.engine.num_questions,
            question_index=progress.question,
            total_correct=progress.correct,
        )

    def load_quiz(self, path: Path | str) -> QuizFileSummary:
        """Resume a quiz from a file written by `save_quiz`."""
        source_path = Path(path)
        parser = etree.XMLParser(resolve_entities=False, no_network=True)
        try:
            root = etree.parse(str(source_path), parser).getroot()
        except OSError as exc:
            raise QuizFileError(f"Could not read quiz file {source_path}: {exc}") from exc
        except etree.XMLSyntaxError as exc:
            raise QuizFileError(f"Quiz file {source_path} is not valid XML: {exc}") from exc

        spec, effective_type, questions, progress, answered = _parse_quiz_file(root)
        if not 0 <= progress.question < len(questions):
            raise QuizFileError(f"Quiz file question position {progress.question} is out of range.")

        engine = QuizEngine(self.lexicon, rng=self.engine.rng)
        engine.load_questions(questions, effective_type)
        engine.restore(progress, answered)
        self.engine = engine
        self.spec = spec
        logger.info("Loaded quiz from %s", source_path)
        return QuizFileSummary(
            path=source_path,
            question_count=len(questions),
            question_index=progress.question,
            total_correct=progress.correct,
        )


def _parse_quiz_file(root: etree._Element) -> tuple[QuizSpecification, MatchType, list[str], QuizProgress, list[str]]:
    """Validate a quiz file root and return its parts."""
    if root.tag != XML_QUIZ_ELEMENT:
        raise QuizFileError(f"Expected <{XML_QUIZ_ELEMENT}>, found <{root.tag}>.")
    version_text = root.get(XML_VERSION_ATTR, "0")
    if not version_text.isdigit():
        raise QuizFileError(f"Quiz file has invalid version {version_text!r}.")
    if int(version_text) > QUIZ_FILE_VERSION:
        raise QuizFileError(f"Quiz file version {version_text} is newer than supported {QUIZ_FILE_VERSION}.")

    source = root.find(XML_SOURCE_ELEMENT)
    questions_elem = root.find(XML_QUESTIONS_ELEMENT)
    progress_elem = root.find(XML_TOP_ELEMENT)
    if source is None or questions_elem is None or progress_elem is None:
        raise QuizFileError("Quiz file is missing its source, questions or progress section.")

    query = source.get(XML_SOURCE_QUERY_ATTR)
    if query is None:
        raise QuizFileError("Quiz file source has no query.")
    spec = QuizSpecification(
        query_text=query,
        match_type=_parse_match_type(source.get(XML_SOURCE_TYPE_ATTR)),
        use_alphagrams=_parse_bool(source.get(XML_SOURCE_ALPHAGRAMS_ATTR, "false")),
        random_order=_parse_bool(source.get(XML_SOURCE_RANDOM_ATTR, "false")),
    )
    effective_type = _parse_match_type(questions_elem.get(XML_QUESTIONS_TYPE_ATTR))

    questions = [(item.text or "").strip() for item in questions_elem.iter(XML_QUESTION_ELEMENT)]
    if not questions or not all(questions):
        raise QuizFileError("Quiz file has no usable questions.")

    progress = QuizProgress()
    if not progress.deserialize(progress_elem):
        raise QuizFileError("Quiz file progress section is malformed.")

    answered: list[str] = []
    answered_elem = root.find(XML_ANSWERED_ELEMENT)
    if answered_elem is not None:
        answered = [(item.text or "").strip() for item in answered_elem.iter(XML_ANSWERED_WORD_ELEMENT)]
        if not all(answered):
            raise QuizFileError("Quiz file has an empty answered word.")
    return spec, effective_type, questions, progress, answered


def _parse_match_type(text: str | None) -> MatchType:
    if text is None:
        raise QuizFileError("Quiz file is missing a match type.")
    try:
        return MatchType.parse(text)
    except ValueError as exc:
        raise QuizFileError(str(exc)) from exc


def _format_bool(value: bool) -> str:
    return "true" if value else "false"


def _parse_bool(text: str) -> bool:
    lowered = text.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise QuizFileError(f"Expected true or false, found {text!r}.")
