"""Quiz progress snapshots and their XML persistence format."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, fields

from lxml import etree

logger = logging.getLogger(__name__)

XML_TOP_ELEMENT = "progress"
XML_QUESTION_ATTR = "question"
XML_CORRECT_ATTR = "correct"
XML_INCORRECT_RESPONSES_ELEMENT = "incorrect-responses"
XML_MISSED_RESPONSES_ELEMENT = "missed-responses"
XML_RESPONSE_ELEMENT = "response"
XML_RESPONSE_WORD_ATTR = "word"
XML_RESPONSE_COUNT_ATTR = "count"

_INTEGER = re.compile(r"[+-]?[0-9]+")


class MalformedProgressDocument(ValueError):
    """A progress document does not follow the persisted schema."""


@dataclass
class QuizProgress:
    """Scoring state of a quiz, detached from any live session.

    State changes only through the setters and `add_*` methods, so each
    word map always sums to its total.
    """

    _question: int = 0
    _correct: int = 0
    _incorrect_count: int = 0
    _missed_count: int = 0
    _incorrect_words: dict[str, int] = field(default_factory=dict)
    _missed_words: dict[str, int] = field(default_factory=dict)

    @property
    def question(self) -> int:
        return self._question

    @property
    def correct(self) -> int:
        return self._correct

    @property
    def incorrect_count(self) -> int:
        return self._incorrect_count

    @property
    def missed_count(self) -> int:
        return self._missed_count

    @property
    def incorrect_words(self) -> dict[str, int]:
        """Incorrect responses and their repeat counts (a copy)."""
        return dict(self._incorrect_words)

    @property
    def missed_words(self) -> dict[str, int]:
        """Missed answers and their repeat counts (a copy)."""
        return dict(self._missed_words)

    def set_question(self, question: int) -> None:
        self._question = question

    def set_correct(self, correct: int) -> None:
        self._correct = correct

    def add_incorrect(self, word: str, count: int | None = None) -> None:
        """Record an incorrect response.

        Without `count` the word's repeat count grows by one. With `count` the
        stored repeat count is overwritten, which is how aggregate counts are
        restored from persisted data.
        """
        if count is None:
            self._incorrect_words[word] = self._incorrect_words.get(word, 0) + 1
            self._incorrect_count += 1
        else:
            self._incorrect_words[word] = count
            self._incorrect_count += count

    def add_missed(self, word: str, count: int | None = None) -> None:
        """Record a missed answer; `count` behaves as in `add_incorrect`."""
        if count is None:
            self._missed_words[word] = self._missed_words.get(word, 0) + 1
            self._missed_count += 1
        else:
            self._missed_words[word] = count
            self._missed_count += count

    def copy(self) -> QuizProgress:
        """Return an independent copy."""
        duplicate = QuizProgress(self._question, self._correct, self._incorrect_count, self._missed_count)
        duplicate._incorrect_words = dict(self._incorrect_words)
        duplicate._missed_words = dict(self._missed_words)
        return duplicate

    def serialize(self) -> etree._Element:
        """Return the progress as a `<progress>` element."""
        top = etree.Element(XML_TOP_ELEMENT)
        top.set(XML_QUESTION_ATTR, str(self.question))
        top.set(XML_CORRECT_ATTR, str(self.correct))
        _append_responses(top, XML_INCORRECT_RESPONSES_ELEMENT, self.incorrect_words)
        _append_responses(top, XML_MISSED_RESPONSES_ELEMENT, self.missed_words)
        return top

    def deserialize(self, element: etree._Element) -> bool:
        """Replace this progress with the contents of a `<progress>` element.

        Returns False and leaves the object untouched when the element does
        not validate.
        """
        try:
            parsed = _parse_progress(element)
        except MalformedProgressDocument as exc:
            logger.warning("Rejected progress document: %s", exc)
            return False
        for item in fields(self):
            setattr(self, item.name, getattr(parsed, item.name))
        return True

    def to_xml(self, pretty: bool = True) -> str:
        """Return the serialized progress as XML text."""
        return etree.tostring(self.serialize(), pretty_print=pretty, encoding="unicode")

    def from_xml(self, text: str) -> bool:
        """Replace this progress from XML text; False if it cannot be used."""
        parser = etree.XMLParser(resolve_entities=False, no_network=True)
        try:
            element = etree.fromstring(text.encode("utf-8"), parser)
        except etree.XMLSyntaxError as exc:
            logger.warning("Rejected progress document: %s", exc)
            return False
        return self.deserialize(element)


def _append_responses(parent: etree._Element, tag: str, words: dict[str, int]) -> None:
    """Append a responses container unless there is nothing to record."""
    if not words:
        return
    container = etree.SubElement(parent, tag)
    for word in sorted(words):
        response = etree.SubElement(container, XML_RESPONSE_ELEMENT)
        response.set(XML_RESPONSE_WORD_ATTR, word)
        response.set(XML_RESPONSE_COUNT_ATTR, str(words[word]))


def _parse_progress(element: etree._Element) -> QuizProgress:
    """Build a scratch progress object, raising on the first schema violation."""
    if element.tag != XML_TOP_ELEMENT:
        raise MalformedProgressDocument(f"Expected <{XML_TOP_ELEMENT}>, found <{element.tag}>.")

    progress = QuizProgress()
    question = element.get(XML_QUESTION_ATTR)
    if question is not None:
        progress.set_question(_parse_int(question, XML_QUESTION_ATTR))
    correct = element.get(XML_CORRECT_ATTR)
    if correct is not None:
        progress.set_correct(_parse_int(correct, XML_CORRECT_ATTR))

    seen: dict[str, set[str]] = {XML_MISSED_RESPONSES_ELEMENT: set(), XML_INCORRECT_RESPONSES_ELEMENT: set()}
    for child in _child_elements(element):
        if child.tag == XML_MISSED_RESPONSES_ELEMENT:
            add = progress.add_missed
        elif child.tag == XML_INCORRECT_RESPONSES_ELEMENT:
            add = progress.add_incorrect
        else:
            raise MalformedProgressDocument(f"Unexpected element <{child.tag}>.")

        kind_seen = seen[child.tag]
        for response in _child_elements(child):
            if response.tag != XML_RESPONSE_ELEMENT:
                raise MalformedProgressDocument(f"Unexpected element <{response.tag}> in <{child.tag}>.")
            word = response.get(XML_RESPONSE_WORD_ATTR)
            count_text = response.get(XML_RESPONSE_COUNT_ATTR)
            if word is None or count_text is None:
                raise MalformedProgressDocument(f"<{XML_RESPONSE_ELEMENT}> requires word and count attributes.")
            if word in kind_seen:
                raise MalformedProgressDocument(f"Duplicate response '{word}' in <{child.tag}>.")
            kind_seen.add(word)
            add(word, _parse_int(count_text, XML_RESPONSE_COUNT_ATTR))
    return progress


def _child_elements(element: etree._Element) -> list[etree._Element]:
    """Return element children, skipping comments and processing instructions."""
    return [child for child in element if isinstance(child.tag, str)]


def _parse_int(text: str, name: str) -> int:
    """Parse an integer attribute value."""
    if not _INTEGER.fullmatch(text):
        raise MalformedProgressDocument(f"Attribute {name}={text!r} is not an integer.")
    return int(text)
