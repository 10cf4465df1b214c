"""CLI entrypoint for the word quiz trainer."""

from __future__ import annotations

import argparse
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path

from .config import Settings
from .engine import QuizEngine
from .lexicon import LexiconQueryError
from .logging_setup import setup_console_logging
from .models import MatchType, QuizSpecification, ResponseStatus
from .service import QuizFileError, QuizService

InputFn = Callable[[str], str]
PrintFn = Callable[[str], None]
MENU_QUIT_COMMANDS = {"q"}
FLOW_EXIT_COMMANDS = {":quit", ":exit", ":q", ":back", ":b"}
NEXT_COMMANDS = {":next", ":n"}
MISSED_COMMANDS = {":missed", ":m"}
SAVE_COMMAND = ":save"
MATCH_TYPE_CHOICES = {
    "1": MatchType.PATTERN,
    "2": MatchType.ANAGRAM,
    "3": MatchType.SUBANAGRAM,
}
STATUS_MESSAGES = {
    ResponseStatus.CORRECT: "Correct.",
    ResponseStatus.INCORRECT: "Incorrect.",
    ResponseStatus.DUPLICATE: "Already answered.",
    ResponseStatus.NO_QUESTION: "No active question.",
}


def _service(settings: Settings) -> QuizService:
    """Create app service for the configured word list."""
    return QuizService.from_settings(settings)


def run(argv: list[str] | None = None) -> int:
    """Run the CLI application."""
    parser = argparse.ArgumentParser(prog="wordquiz", description="Lexicon-driven word study quizzes")
    parser.add_argument("command", nargs="?", default="play", choices=["play"])
    parser.add_argument("--word-list", type=Path, default=None, help="word list file, one word per line")
    parser.add_argument("--log-level", default=None, help="logging level (default: WARNING)")
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    if args.word_list is not None:
        settings = replace(settings, word_list=args.word_list)
    if args.log_level is not None:
        settings = replace(settings, log_level=args.log_level.upper())
    setup_console_logging(settings.log_level)
    return play_shell(settings)


def play_shell(settings: Settings, input_fn: InputFn = input, print_fn: PrintFn = print) -> int:
    """Run persistent menu-driven shell."""
    try:
        service = _service(settings)
    except LexiconQueryError as exc:
        print_fn(f"Could not load word list: {exc}")
        return 1

    while True:
        print_fn("\n=== Word Quiz ===")
        print_fn("1) New quiz")
        print_fn("2) Resume saved quiz")
        print_fn("q) Quit")
        choice = input_fn("Choose: ").strip().lower()

        if choice == "1":
            _new_quiz_flow(service, settings, input_fn, print_fn)
        elif choice == "2":
            _resume_quiz_flow(service, settings, input_fn, print_fn)
        elif choice in MENU_QUIT_COMMANDS:
            return 0
        else:
            print_fn("Invalid choice.")


def _ask_yes_no(prompt: str, input_fn: InputFn) -> bool:
    """Ask a yes/no question defaulting to no."""
    return input_fn(f"{prompt} [y/N]: ").strip().lower() in {"y", "yes"}


def _new_quiz_flow(service: QuizService, settings: Settings, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Collect a quiz specification and run the quiz."""
    print_fn("\n=== New Quiz ===")
    query = input_fn("Query (letters or pattern): ").strip()
    if not query:
        print_fn("Query is required.")
        return
    print_fn("1) Pattern")
    print_fn("2) Anagram")
    print_fn("3) Subanagram")
    match_type = MATCH_TYPE_CHOICES.get(input_fn("Match type: ").strip())
    if match_type is None:
        print_fn("Invalid choice.")
        return
    spec = QuizSpecification(
        query_text=query,
        match_type=match_type,
        use_alphagrams=_ask_yes_no("Quiz on alphagrams", input_fn),
        random_order=_ask_yes_no("Random order", input_fn),
    )

    try:
        count = service.start_quiz(spec)
    except LexiconQueryError as exc:
        print_fn(f"Could not start quiz: {exc}")
        return
    if count == 0:
        print_fn("No questions matched that query.")
        return
    _run_quiz(service, settings, input_fn, print_fn)


def _resume_quiz_flow(service: QuizService, settings: Settings, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Load a saved quiz file and continue it."""
    print_fn("\n=== Resume Quiz ===")
    path_text = input_fn(f"Quiz file path (blank = {settings.default_save_path}): ").strip()
    path = Path(path_text) if path_text else settings.default_save_path
    try:
        summary = service.load_quiz(path)
    except (QuizFileError, LexiconQueryError) as exc:
        print_fn(f"Resume failed: {exc}")
        return
    print_fn(f"Resumed {path} at question {summary.question_index + 1} of {summary.question_count}.")
    _run_quiz(service, settings, input_fn, print_fn)


def _print_question(engine: QuizEngine, print_fn: PrintFn) -> None:
    """Show the current prompt with how many answers it has."""
    total = len(engine.get_missed()) + len(engine.get_correct())
    print_fn(f"\nQuestion {engine.question_index + 1}/{engine.num_questions}: {engine.get_question()}")
    print_fn(f"Answers: {total} ({len(engine.get_correct())} found)")


def _print_summary(engine: QuizEngine, print_fn: PrintFn) -> None:
    """Show running quiz totals."""
    possible = engine.total_possible
    percent = 100.0 if possible == 0 else (100.0 * engine.total_correct / possible)
    print_fn(f"Score: {engine.total_correct}/{possible} correct ({percent:.1f}%), {engine.total_incorrect} incorrect")


def _run_quiz(service: QuizService, settings: Settings, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Prompt for responses until the quiz ends or the user leaves."""
    print_fn("Type answers one at a time. Commands: :next, :missed, :save [path], :quit")
    _print_question(service.engine, print_fn)

    while True:
        user_input = input_fn("Answer: ").strip()
        lowered = user_input.lower()
        if not user_input:
            continue
        if lowered in FLOW_EXIT_COMMANDS:
            print_fn("Leaving quiz.")
            return
        if lowered in MISSED_COMMANDS:
            missed = service.engine.get_missed()
            print_fn(f"Remaining: {', '.join(missed)}" if missed else "All answers found.")
            continue
        if lowered.split(maxsplit=1)[0] == SAVE_COMMAND:
            _save_quiz(service, settings, user_input[len(SAVE_COMMAND) :].strip(), print_fn)
            continue
        if lowered in NEXT_COMMANDS:
            engine = service.engine
            missed = engine.get_missed()
            if missed:
                print_fn(f"Missed: {', '.join(missed)}")
            try:
                advanced = engine.next_question()
            except LexiconQueryError as exc:
                print_fn(f"Could not load the next question: {exc}")
                continue
            if not advanced:
                print_fn("\nQuiz complete.")
                _print_summary(engine, print_fn)
                return
            _print_summary(engine, print_fn)
            _print_question(engine, print_fn)
            continue

        status = service.respond(user_input)
        print_fn(STATUS_MESSAGES[status])
        if status is ResponseStatus.CORRECT and not service.engine.get_missed():
            print_fn("All answers found. Type :next to continue.")


def _save_quiz(service: QuizService, settings: Settings, path_text: str, print_fn: PrintFn) -> None:
    """Save the running quiz to a file."""
    path = Path(path_text) if path_text else settings.default_save_path
    try:
        summary = service.save_quiz(path)
    except (QuizFileError, OSError) as exc:
        print_fn(f"Save failed: {exc}")
        return
    print_fn(f"Saved quiz to {summary.path} (question {summary.question_index + 1} of {summary.question_count}).")


def main_entry() -> None:
    """Console script entrypoint."""
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main_entry()
