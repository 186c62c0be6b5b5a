"""Inline env files (``build_env``, ``deploy_env``).

These files are written as shell assignments but are never handed to a shell.
Only a narrow grammar is understood:

* ``NAME=word`` statements, separated by newlines or ``;``, optionally
  prefixed with ``export``. Every assignment is exported regardless.
* words made of plain text, ``'single quotes'``, ``"double quotes"`` and
  backslash escapes.
* ``$NAME``, ``${NAME}`` and ``${NAME:-default}`` substitution.

Anything else (commands, pipes, ``$(...)``) is rejected with an
``EnvEvalError`` before a single assignment is applied.
"""

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional, Union

from .errors import EnvEvalError


_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_BLANKS = " \t"
_STATEMENT_END = "\n;"
_METACHARS = "`|&<>()"
_SPECIAL_PARAMS = "0123456789?$!#*@-"


class EnvironmentSet(Mapping):
    """Immutable snapshot of a process environment."""

    __slots__ = ("_values",)

    def __init__(self, values: Optional[Mapping] = None):
        self._values = dict(values or {})

    @classmethod
    def from_environ(cls, environ: Optional[Mapping] = None) -> "EnvironmentSet":
        return cls(os.environ if environ is None else environ)

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self):
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"EnvironmentSet({len(self._values)} vars)"

    def to_dict(self) -> dict[str, str]:
        """Copy for handing to a child process."""
        return dict(self._values)

    def changes_from(self, base: Mapping) -> dict[str, str]:
        """Variables whose value differs from (or is absent in) ``base``."""
        return {
            key: value for key, value in self._values.items()
            if base.get(key) != value
        }


@dataclass(frozen=True)
class Expansion:
    """A ``$NAME`` reference. ``default`` holds the word after ``:-``, if any."""

    name: str
    default: Optional[tuple] = None


Part = Union[str, Expansion]


@dataclass(frozen=True)
class Assignment:
    name: str
    value: tuple[Part, ...]
    line: int


def _append(parts: list, part: Part) -> None:
    if isinstance(part, str) and parts and isinstance(parts[-1], str):
        parts[-1] += part
    elif part != "":
        parts.append(part)


class _Parser:
    def __init__(self, text: str, source: str):
        self.text = text
        self.source = source
        self.pos = 0
        self.line = 1

    def error(self, message: str, line: Optional[int] = None) -> EnvEvalError:
        return EnvEvalError(message, line or self.line, self.source)

    def peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        return self.text[index] if index < len(self.text) else ""

    def advance(self) -> str:
        ch = self.text[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
        return ch

    def parse(self) -> tuple[Assignment, ...]:
        statements: list[Assignment] = []
        while self.pos < len(self.text):
            self._skip_blanks()
            ch = self.peek()
            if not ch:
                break
            if ch in _STATEMENT_END:
                self.advance()
            elif ch == "#":
                self._skip_comment()
            else:
                statements.extend(self._statement())
        return tuple(statements)

    def _skip_blanks(self) -> None:
        while True:
            ch = self.peek()
            if ch and ch in _BLANKS:
                self.advance()
            elif ch == "\\" and self.peek(1) == "\n":
                self.advance()
                self.advance()
            else:
                return

    def _skip_comment(self) -> None:
        while self.peek() and self.peek() != "\n":
            self.advance()

    def _at_export(self) -> bool:
        if not self.text.startswith("export", self.pos):
            return False
        following = self.peek(len("export"))
        return not following or following in _BLANKS + _STATEMENT_END

    def _offending_word(self) -> str:
        end = self.pos
        while end < len(self.text) and self.text[end] not in _BLANKS + _STATEMENT_END:
            end += 1
        word = self.text[self.pos:end]
        return word if len(word) <= 40 else word[:37] + "..."

    def _statement(self) -> list[Assignment]:
        line = self.line
        exported = self._at_export()
        if exported:
            self.pos += len("export")

        assignments: list[Assignment] = []
        seen_word = False
        while True:
            self._skip_blanks()
            ch = self.peek()
            if not ch or ch in _STATEMENT_END:
                break
            if ch == "#":
                self._skip_comment()
                break
            seen_word = True
            assignment = self._assignment(exported)
            if assignment is not None:
                assignments.append(assignment)

        if exported and not seen_word:
            raise self.error("'export' needs at least one NAME", line)
        return assignments

    def _assignment(self, exported: bool) -> Optional[Assignment]:
        line = self.line
        match = _NAME_RE.match(self.text, self.pos)
        following = ""
        if match is not None:
            following = self.text[match.end():match.end() + 1]

        if match is not None and following == "=":
            self.pos = match.end() + 1
            return Assignment(match.group(), self._word(), line)

        # `export NAME` is accepted; every assignment is exported anyway.
        if exported and match is not None and (not following or following in _BLANKS + _STATEMENT_END):
            self.pos = match.end()
            return None

        raise self.error(f"unsupported statement {self._offending_word()!r}", line)

    def _word(self, stop: str = "") -> tuple[Part, ...]:
        parts: list = []
        while True:
            ch = self.peek()
            if not ch:
                if stop:
                    raise self.error(f"missing '{stop}'")
                break
            if stop:
                if ch == stop:
                    break
            elif ch in _BLANKS + _STATEMENT_END:
                break

            if ch == "'":
                _append(parts, self._single_quoted())
            elif ch == '"':
                self._double_quoted(parts)
            elif ch == "\\":
                self.advance()
                if not self.peek():
                    raise self.error("trailing backslash")
                escaped = self.advance()
                if escaped != "\n":
                    _append(parts, escaped)
            elif ch == "$":
                _append(parts, self._expansion())
            elif ch in _METACHARS:
                raise self.error(f"unsupported shell syntax {ch!r}")
            else:
                _append(parts, self.advance())
        return tuple(parts)

    def _single_quoted(self) -> str:
        line = self.line
        self.advance()
        end = self.text.find("'", self.pos)
        if end == -1:
            raise self.error("unterminated single quote", line)
        value = self.text[self.pos:end]
        self.line += value.count("\n")
        self.pos = end + 1
        return value

    def _double_quoted(self, parts: list) -> None:
        line = self.line
        self.advance()
        while True:
            ch = self.peek()
            if not ch:
                raise self.error("unterminated double quote", line)
            if ch == '"':
                self.advance()
                return
            if ch == "\\":
                self.advance()
                escaped = self.peek()
                if escaped and escaped in '$"\\`':
                    _append(parts, self.advance())
                elif escaped == "\n":
                    self.advance()
                else:
                    _append(parts, "\\")
            elif ch == "$":
                _append(parts, self._expansion())
            elif ch == "`":
                raise self.error("command substitution is not supported")
            else:
                _append(parts, self.advance())

    def _expansion(self) -> Part:
        self.advance()
        ch = self.peek()

        if ch == "{":
            line = self.line
            self.advance()
            match = _NAME_RE.match(self.text, self.pos)
            if match is None:
                raise self.error("bad substitution")
            name = match.group()
            self.pos = match.end()

            default = None
            if self.text.startswith(":-", self.pos):
                self.pos += 2
                default = self._word(stop="}")

            if self.peek() != "}":
                if not self.peek():
                    raise self.error("missing '}'", line)
                raise self.error(f"unsupported substitution in '${{{name}'")
            self.advance()
            return Expansion(name, default)

        if ch == "(":
            raise self.error("command substitution is not supported")
        if ch and ch in _SPECIAL_PARAMS:
            raise self.error(f"special parameter '${ch}' is not supported")

        match = _NAME_RE.match(self.text, self.pos)
        if match is None:
            return "$"
        self.pos = match.end()
        return Expansion(match.group())


def parse(text: str, source: str = "") -> tuple[Assignment, ...]:
    """Parse env file content into assignments. Raises EnvEvalError."""
    return _Parser(text, source).parse()


def expand(parts: tuple[Part, ...], env: Mapping) -> str:
    """Render a parsed word against ``env``. Unset names expand to ''."""
    out = []
    for part in parts:
        if isinstance(part, Expansion):
            value = env.get(part.name, "")
            if not value and part.default is not None:
                value = expand(part.default, env)
            out.append(value)
        else:
            out.append(part)
    return "".join(out)


def evaluate(text: str, env: Mapping, source: str = "") -> EnvironmentSet:
    """Apply the assignments in ``text`` on top of ``env``.

    The whole text is parsed first, so a syntax error anywhere leaves no
    partial result. ``env`` itself is never modified.
    """
    statements = parse(text, source)
    values = dict(env)
    for statement in statements:
        values[statement.name] = expand(statement.value, values)
    return EnvironmentSet(values)
