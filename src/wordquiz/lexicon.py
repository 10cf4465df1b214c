"""Lexicon service contract and a reference word-list lexicon."""

from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Iterable
from importlib import resources
from pathlib import Path
from typing import Protocol

from .models import MatchType

logger = logging.getLogger(__name__)

WORD_LIST_PACKAGE = "wordquiz.data"
DEFAULT_WORD_LIST = "words.txt"
BLANK = "?"


class LexiconQueryError(ValueError):
    """A lexicon could not resolve a query."""


class Lexicon(Protocol):
    """Word lookups consumed by the quiz engine.

    Every method may raise `LexiconQueryError` for malformed queries or an
    unusable lexicon.
    """

    def match_pattern(self, pattern: str) -> list[str]:
        """Return words matching a wildcard pattern."""
        ...

    def match_anagram(self, letters: str) -> list[str]:
        """Return words using exactly the given letters."""
        ...

    def match_subanagram(self, letters: str) -> list[str]:
        """Return words using a subset of the given letters."""
        ...

    def alphagrams(self, words: list[str]) -> list[str]:
        """Collapse words into one alphagram per distinct letter multiset."""
        ...


LEXICON_QUERIES: dict[MatchType, str] = {
    MatchType.PATTERN: "match_pattern",
    MatchType.ANAGRAM: "match_anagram",
    MatchType.SUBANAGRAM: "match_subanagram",
}


def run_query(lexicon: Lexicon, match_type: MatchType, text: str) -> list[str]:
    """Dispatch one query to the lexicon call registered for `match_type`."""
    method_name = LEXICON_QUERIES.get(match_type)
    if method_name is None:
        raise LexiconQueryError(f"No lexicon query registered for match type {match_type!r}.")
    query = getattr(lexicon, method_name)
    return list(query(text))


def alphagram(word: str) -> str:
    """Return the letters of a word in sorted order."""
    return "".join(sorted(word.upper()))


class WordListLexicon:
    """In-memory lexicon answering queries by scanning a word list.

    No index is built; every query walks the full list.
    """

    def __init__(self, words: Iterable[str]) -> None:
        """Normalize and store the word list."""
        cleaned = {word.strip().upper() for word in words}
        self.words: list[str] = sorted(word for word in cleaned if word and word.isalpha())

    def __len__(self) -> int:
        return len(self.words)

    def match_pattern(self, pattern: str) -> list[str]:
        """Return words matching `pattern`.

        `?` matches one letter, `*` any run of letters, `[ABC]` one of the
        listed letters and `[^ABC]` any letter not listed.
        """
        regex = _compile_pattern(pattern)
        return [word for word in self.words if regex.fullmatch(word)]

    def match_anagram(self, letters: str) -> list[str]:
        """Return words using exactly `letters`; `?` is a blank."""
        pool, blanks = _letter_pool(letters)
        size = sum(pool.values()) + blanks
        return [word for word in self.words if len(word) == size and _fits(word, pool, blanks)]

    def match_subanagram(self, letters: str) -> list[str]:
        """Return words that can be built from some of `letters`; `?` is a blank."""
        pool, blanks = _letter_pool(letters)
        size = sum(pool.values()) + blanks
        return [word for word in self.words if len(word) <= size and _fits(word, pool, blanks)]

    def alphagrams(self, words: list[str]) -> list[str]:
        """Return distinct alphagrams of `words` in first-seen order."""
        seen: dict[str, None] = {}
        for word in words:
            seen.setdefault(alphagram(word), None)
        return list(seen)


def _letter_pool(letters: str) -> tuple[Counter[str], int]:
    """Split query letters into a letter multiset and a blank count."""
    text = letters.strip().upper()
    if not text:
        raise LexiconQueryError("Query letters are required.")
    pool: Counter[str] = Counter()
    blanks = 0
    for char in text:
        if char == BLANK:
            blanks += 1
        elif char.isalpha():
            pool[char] += 1
        else:
            raise LexiconQueryError(f"Invalid character {char!r} in letters '{letters}'.")
    return pool, blanks


def _fits(word: str, pool: Counter[str], blanks: int) -> bool:
    """Return whether `word` can be spelled from the pool plus blanks."""
    needed = Counter(word)
    shortfall = sum(max(0, count - pool[char]) for char, count in needed.items())
    return shortfall <= blanks


def _compile_pattern(pattern: str) -> re.Pattern[str]:
    """Translate a wildcard pattern into an anchored regular expression."""
    text = pattern.strip().upper()
    if not text:
        raise LexiconQueryError("Pattern is required.")
    parts: list[str] = []
    index = 0
    while index < len(text):
        char = text[index]
        if char == "?":
            parts.append(".")
        elif char == "*":
            parts.append(".*")
        elif char == "[":
            end = text.find("]", index + 1)
            if end == -1:
                raise LexiconQueryError(f"Unbalanced '[' in pattern '{pattern}'.")
            body = text[index + 1 : end]
            negated = body.startswith("^")
            if negated:
                body = body[1:]
            if not body or not body.isalpha():
                raise LexiconQueryError(f"Invalid letter class '[{text[index + 1 : end]}]' in pattern '{pattern}'.")
            members = re.escape(body)
            parts.append(f"(?![{members}])." if negated else f"[{members}]")
            index = end
        elif char.isalpha():
            parts.append(re.escape(char))
        else:
            raise LexiconQueryError(f"Invalid character {char!r} in pattern '{pattern}'.")
        index += 1
    return re.compile("".join(parts))


def _read_words(lines: Iterable[str]) -> list[str]:
    """Return words from word-list lines, skipping blanks and `#` comments."""
    words: list[str] = []
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        words.append(stripped.split()[0])
    return words


def load_word_list(path: Path | str) -> WordListLexicon:
    """Load a lexicon from a one-word-per-line text file."""
    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise LexiconQueryError(f"Could not read word list {file_path}: {exc}") from exc
    lexicon = WordListLexicon(_read_words(text.splitlines()))
    logger.info("Loaded %d words from %s", len(lexicon), file_path)
    return lexicon


def load_default_word_list() -> WordListLexicon:
    """Load the bundled sample word list."""
    entry = resources.files(WORD_LIST_PACKAGE).joinpath(DEFAULT_WORD_LIST)
    lexicon = WordListLexicon(_read_words(entry.read_text(encoding="utf-8-sig").splitlines()))
    logger.info("Loaded %d words from bundled word list", len(lexicon))
    return lexicon
