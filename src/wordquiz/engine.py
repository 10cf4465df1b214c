"""Quiz session engine: question preparation and response scoring."""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable, MutableSequence

from .lexicon import Lexicon, LexiconQueryError, run_query
from .models import MatchType, QuizSpecification, ResponseStatus, derive_effective_type
from .progress import QuizProgress

logger = logging.getLogger(__name__)


def shuffle_in_place(items: MutableSequence[str], rng: random.Random) -> None:
    """Shuffle `items` uniformly (Fisher-Yates, walking down from the end)."""
    for index in range(len(items) - 1, 0, -1):
        target = rng.randint(0, index)
        items[index], items[target] = items[target], items[index]


class QuizEngine:
    """Owns one quiz session at a time and scores responses against it."""

    def __init__(self, lexicon: Lexicon, rng: random.Random | None = None) -> None:
        """Create an engine with no active session."""
        self.lexicon = lexicon
        self.rng = rng if rng is not None else random.Random()
        self._questions: list[str] = []
        self._effective_type = MatchType.ANAGRAM
        self._question_index = 0
        self._correct_answers: set[str] = set()
        self._user_correct: set[str] = set()
        self._user_incorrect: list[str] = []
        self._total_possible = 0
        self._total_correct = 0
        self._total_incorrect = 0
        self._incorrect_tally: dict[str, int] = {}
        self._missed_tally: dict[str, int] = {}

    @property
    def questions(self) -> tuple[str, ...]:
        return tuple(self._questions)

    @property
    def num_questions(self) -> int:
        return len(self._questions)

    @property
    def has_questions(self) -> bool:
        return bool(self._questions)

    @property
    def effective_type(self) -> MatchType:
        return self._effective_type

    @property
    def question_index(self) -> int:
        return self._question_index

    @property
    def total_possible(self) -> int:
        return self._total_possible

    @property
    def total_correct(self) -> int:
        return self._total_correct

    @property
    def total_incorrect(self) -> int:
        return self._total_incorrect

    def new_quiz(self, spec: QuizSpecification) -> None:
        """Start a new quiz session from a query specification.

        The question list is built from the lexicon before the current
        session is touched, so a `LexiconQueryError` leaves it intact.
        """
        if spec.use_alphagrams:
            try:
                words = run_query(self.lexicon, spec.match_type, spec.query_text)
                questions = list(self.lexicon.alphagrams(words))
            except LexiconQueryError as exc:
                logger.warning("Could not build questions for %r: %s", spec.query_text, exc)
                raise
        else:
            questions = [spec.query_text]

        if spec.random_order:
            shuffle_in_place(questions, self.rng)

        effective_type = derive_effective_type(spec.match_type, spec.use_alphagrams)
        self._start(questions, effective_type)
        logger.info(
            "New %s quiz for %r: %d question(s), answers by %s",
            spec.match_type.value,
            spec.query_text,
            len(questions),
            effective_type.value,
        )

    def load_questions(self, questions: list[str], effective_type: MatchType) -> None:
        """Start a session from an explicit question list, e.g. a saved quiz."""
        self._start(list(questions), effective_type)
        logger.info("Loaded quiz with %d question(s), answers by %s", len(questions), effective_type.value)

    def _start(self, questions: list[str], effective_type: MatchType) -> None:
        """Resolve the first question's answers, then replace the session."""
        answers = self._resolve(questions[0], effective_type) if questions else set()

        self._questions = questions
        self._effective_type = effective_type
        self._question_index = 0
        self._total_possible = 0
        self._total_correct = 0
        self._total_incorrect = 0
        self._incorrect_tally = {}
        self._missed_tally = {}
        self._install(answers)

    def _resolve(self, question: str, effective_type: MatchType) -> set[str]:
        """Return the answer set for one question."""
        try:
            return set(run_query(self.lexicon, effective_type, question))
        except LexiconQueryError as exc:
            logger.warning("Could not resolve answers for %r: %s", question, exc)
            raise

    def _install(self, answers: set[str]) -> None:
        """Make `answers` the current question's answer set."""
        self._correct_answers = answers
        self._user_correct = set()
        self._user_incorrect = []
        self._total_possible += len(answers)

    def next_question(self) -> bool:
        """Advance to the next question; False when there is none.

        Answers not supplied for the question being left are counted as
        missed once the next question's answers have been resolved.
        """
        if not self._questions or self.on_last_question():
            return False
        answers = self._resolve(self._questions[self._question_index + 1], self._effective_type)
        for word in self.get_missed():
            self._missed_tally[word] = self._missed_tally.get(word, 0) + 1
        self._question_index += 1
        self._install(answers)
        return True

    def respond(self, response: str) -> ResponseStatus:
        """Classify one response against the current question."""
        if not self._questions:
            return ResponseStatus.NO_QUESTION
        if response not in self._correct_answers:
            self._user_incorrect.append(response)
            self._total_incorrect += 1
            self._incorrect_tally[response] = self._incorrect_tally.get(response, 0) + 1
            return ResponseStatus.INCORRECT
        if response in self._user_correct:
            return ResponseStatus.DUPLICATE
        self._user_correct.add(response)
        self._total_correct += 1
        return ResponseStatus.CORRECT

    def get_question(self) -> str | None:
        """Return the current prompt, or None without an active question."""
        if not 0 <= self._question_index < len(self._questions):
            return None
        return self._questions[self._question_index]

    def get_missed(self) -> list[str]:
        """Return correct answers the user has not supplied yet."""
        return sorted(self._correct_answers - self._user_correct)

    def get_correct(self) -> list[str]:
        """Return correct answers the user has supplied for this question."""
        return sorted(self._user_correct)

    def get_incorrect(self) -> list[str]:
        """Return incorrect responses for this question in the order given."""
        return list(self._user_incorrect)

    def on_last_question(self) -> bool:
        """Return whether the current question is the final one."""
        if not self._questions:
            return False
        return self._question_index == len(self._questions) - 1

    def snapshot(self) -> QuizProgress:
        """Return a detached progress record of the session so far."""
        progress = QuizProgress()
        progress.set_question(self._question_index)
        progress.set_correct(self._total_correct)
        for word, count in self._incorrect_tally.items():
            progress.add_incorrect(word, count)
        for word, count in self._missed_tally.items():
            progress.add_missed(word, count)
        return progress

    def restore(self, progress: QuizProgress, answered: Iterable[str] = ()) -> None:
        """Resume the loaded question list at the position `progress` records.

        `answered` holds the correct responses already given to the current
        question; words that are not among its answers are ignored.
        """
        position = progress.question
        if not 0 <= position < len(self._questions):
            raise ValueError(f"Progress question {position} is outside a quiz of {len(self._questions)} question(s).")

        earlier = [self._resolve(question, self._effective_type) for question in self._questions[:position]]
        answers = self._resolve(self._questions[position], self._effective_type)

        self._question_index = position
        self._total_possible = sum(len(item) for item in earlier)
        self._install(answers)
        self._user_correct = answers & set(answered)
        self._total_correct = progress.correct
        self._total_incorrect = progress.incorrect_count
        self._incorrect_tally = dict(progress.incorrect_words)
        self._missed_tally = dict(progress.missed_words)
        logger.info("Resumed quiz at question %d of %d", position + 1, len(self._questions))
