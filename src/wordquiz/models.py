"""Core domain models for lexicon-driven word quizzes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class MatchType(Enum):
    """Lexicon query used to build questions and resolve their answers."""

    PATTERN = "pattern"
    ANAGRAM = "anagram"
    SUBANAGRAM = "subanagram"

    @classmethod
    def parse(cls, text: str) -> MatchType:
        """Return the match type named by `text` (case-insensitive)."""
        try:
            return cls(text.strip().lower())
        except ValueError:
            choices = ", ".join(item.value for item in cls)
            raise ValueError(f"Unknown match type '{text}' (expected one of: {choices}).") from None


class ResponseStatus(Enum):
    """Classification of one user response."""

    CORRECT = "correct"
    INCORRECT = "incorrect"
    DUPLICATE = "duplicate"
    NO_QUESTION = "no-question"


@dataclass(frozen=True)
class QuizSpecification:
    """Input describing a new quiz session."""

    query_text: str
    match_type: MatchType
    use_alphagrams: bool = False
    random_order: bool = False


def derive_effective_type(requested: MatchType, use_alphagrams: bool) -> MatchType:
    """Return the match type used to resolve answers for each question.

    A pattern quiz over alphagrams uses the pattern only to choose which
    alphagram groups become questions. Each question is itself a set of
    letters, so its answers are resolved by anagram matching.
    """
    if use_alphagrams and requested is MatchType.PATTERN:
        return MatchType.ANAGRAM
    return requested
