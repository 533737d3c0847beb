"""Split Exec/TryExec values into environment assignments and argv.

Tokenizing happens in three layers:

1. Desktop-entry string escapes (`\\\\`, `\\s`, `\\n`, `\\t`, `\\r`) are decoded.
2. A small state machine splits the result on whitespace, honoring single
   quotes, double quotes and backslash escapes, and drops field codes such
   as `%U` while it scans.
3. Leading `KEY=VALUE` tokens, optionally behind an `env` prefix, are peeled
   off into the environment assignments.
"""

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import PurePosixPath

from desktop_scout.models.result import CommandLine


class TokenizeFailure(Exception):
    """Raised when a command line has unbalanced quoting."""


STRING_ESCAPES: Mapping[str, str] = {
    "\\": "\\",
    "s": " ",
    "n": "\n",
    "t": "\t",
    "r": "\r",
}

FIELD_CODES = frozenset("fFuUdDnNickvm")

DOUBLE_QUOTE_ESCAPABLE = frozenset('"\\$`')

WHITESPACE = frozenset(" \t\n\r")

ASSIGNMENT_RE = re.compile(r"([A-Za-z_][A-Za-z0-9_]*)=(.*)", re.DOTALL)

ENV_OPTIONS_WITH_ARG = frozenset({"-u", "--unset", "-C", "--chdir"})


class State(Enum):
    UNQUOTED = auto()
    SINGLE_QUOTED = auto()
    DOUBLE_QUOTED = auto()
    ESCAPE_NEXT = auto()
    FIELD_CODE = auto()


class CharClass(Enum):
    SPACE = auto()
    SINGLE_QUOTE = auto()
    DOUBLE_QUOTE = auto()
    BACKSLASH = auto()
    PERCENT = auto()
    OTHER = auto()


def classify(ch: str) -> CharClass:
    if ch in WHITESPACE:
        return CharClass.SPACE
    match ch:
        case "'":
            return CharClass.SINGLE_QUOTE
        case '"':
            return CharClass.DOUBLE_QUOTE
        case "\\":
            return CharClass.BACKSLASH
        case "%":
            return CharClass.PERCENT
        case _:
            return CharClass.OTHER


@dataclass
class Scanner:
    """Mutable scanning state for one command line."""

    state: State = State.UNQUOTED
    # State to return to once an escape or field code has been consumed.
    resume: State = State.UNQUOTED
    chars: list[str] = field(default_factory=list)
    quoted: bool = False
    had_field_code: bool = False
    tokens: list[str] = field(default_factory=list)

    def feed(self, ch: str) -> None:
        action = TRANSITIONS.get((self.state, classify(ch)), DEFAULT_ACTIONS[self.state])
        action(self, ch)

    def append(self, text: str) -> None:
        self.chars.append(text)

    def finish_token(self) -> None:
        # A quoted empty string is an argument; a bare field code is not.
        if self.chars or (self.quoted and not self.had_field_code):
            self.tokens.append("".join(self.chars))
        self.chars.clear()
        self.quoted = False
        self.had_field_code = False

    def finish(self) -> list[str]:
        if self.state is State.FIELD_CODE:
            self.append("%")
            self.state = self.resume
        match self.state:
            case State.SINGLE_QUOTED:
                raise TokenizeFailure("Unterminated single quote")
            case State.DOUBLE_QUOTED:
                raise TokenizeFailure("Unterminated double quote")
            case State.ESCAPE_NEXT:
                raise TokenizeFailure("Trailing backslash escapes nothing")
        self.finish_token()
        return self.tokens


type Action = Callable[[Scanner, str], None]


def _append(scanner: Scanner, ch: str) -> None:
    scanner.append(ch)


def _split(scanner: Scanner, ch: str) -> None:
    scanner.finish_token()


def _enter(state: State) -> Action:
    def action(scanner: Scanner, ch: str) -> None:
        scanner.quoted = True
        scanner.state = state

    return action


def _leave_quote(scanner: Scanner, ch: str) -> None:
    scanner.state = State.UNQUOTED


def _suspend(state: State) -> Action:
    def action(scanner: Scanner, ch: str) -> None:
        scanner.resume = scanner.state
        scanner.state = state

    return action


def _escaped(scanner: Scanner, ch: str) -> None:
    if scanner.resume is State.DOUBLE_QUOTED and ch not in DOUBLE_QUOTE_ESCAPABLE:
        scanner.append("\\")
    scanner.append(ch)
    scanner.state = scanner.resume


def _field_code(scanner: Scanner, ch: str) -> None:
    scanner.state = scanner.resume
    if ch == "%":
        scanner.append("%")
    elif ch in FIELD_CODES:
        scanner.had_field_code = True
    else:
        # Not a field code: keep the percent sign and rescan the character.
        scanner.append("%")
        scanner.feed(ch)


TRANSITIONS: Mapping[tuple[State, CharClass], Action] = {
    (State.UNQUOTED, CharClass.SPACE): _split,
    (State.UNQUOTED, CharClass.SINGLE_QUOTE): _enter(State.SINGLE_QUOTED),
    (State.UNQUOTED, CharClass.DOUBLE_QUOTE): _enter(State.DOUBLE_QUOTED),
    (State.UNQUOTED, CharClass.BACKSLASH): _suspend(State.ESCAPE_NEXT),
    (State.UNQUOTED, CharClass.PERCENT): _suspend(State.FIELD_CODE),
    (State.SINGLE_QUOTED, CharClass.SINGLE_QUOTE): _leave_quote,
    (State.DOUBLE_QUOTED, CharClass.DOUBLE_QUOTE): _leave_quote,
    (State.DOUBLE_QUOTED, CharClass.BACKSLASH): _suspend(State.ESCAPE_NEXT),
    (State.DOUBLE_QUOTED, CharClass.PERCENT): _suspend(State.FIELD_CODE),
}

DEFAULT_ACTIONS: Mapping[State, Action] = {
    State.UNQUOTED: _append,
    State.SINGLE_QUOTED: _append,
    State.DOUBLE_QUOTED: _append,
    State.ESCAPE_NEXT: _escaped,
    State.FIELD_CODE: _field_code,
}


def unescape_string(raw: str) -> str:
    """Decode desktop-entry string escapes, leaving quoting escapes intact."""
    out: list[str] = []
    chars = iter(raw)
    for ch in chars:
        if ch != "\\":
            out.append(ch)
            continue
        nxt = next(chars, None)
        if nxt is None:
            out.append(ch)
        elif nxt in STRING_ESCAPES:
            out.append(STRING_ESCAPES[nxt])
        else:
            out.append(ch + nxt)
    return "".join(out)


def split_words(raw: str) -> list[str]:
    """Split an unescaped command line into words, dropping field codes."""
    scanner = Scanner()
    for ch in raw:
        scanner.feed(ch)
    return scanner.finish()


def is_env_command(token: str) -> bool:
    return token == "env" or (token.startswith("/") and PurePosixPath(token).name == "env")


def split_env_assignments(words: Sequence[str]) -> CommandLine:
    """Peel leading `KEY=VALUE` words, including those behind an `env` prefix."""
    env: dict[str, str] = {}

    def peel(i: int) -> int:
        while i < len(words) and (match := ASSIGNMENT_RE.fullmatch(words[i])):
            env[match.group(1)] = match.group(2)
            i += 1
        return i

    i = peel(0)
    if i < len(words) and is_env_command(words[i]):
        i += 1
        while i < len(words):
            word = words[i]
            if word in ENV_OPTIONS_WITH_ARG:
                i += 2
            elif word.startswith("-"):
                i += 1
            elif ASSIGNMENT_RE.fullmatch(word):
                i = peel(i)
            else:
                break

    return CommandLine(env_assignments=tuple(env.items()), argv=tuple(words[i:]))


def tokenize(raw: str) -> CommandLine:
    """Tokenize an Exec or TryExec value.

    Raises:
        TokenizeFailure: If a quote is left open or the line ends in a
            dangling backslash.

    """
    return split_env_assignments(split_words(unescape_string(raw)))
