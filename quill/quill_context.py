"""
The Quill cursor/evaluator.

A ``Context`` is a mutable cursor over an immutable text buffer plus a flat
variable table. Reading and evaluating are the same activity: reading a unit
may resolve a ``$name`` variable or run a ``${...}`` substitution, so every
higher-level reader built on ``read_unit`` gets interpolation for free.

Naming:
  consume = advance the index
  seek    = look without advancing
  read    = seek and consume

  character = one code point of the buffer
  token     = a fixed literal string
  unit      = character | variable value | substitution result
"""
import json
import os
import re
import sys
from typing import Any, Dict, Iterable, List, Optional

from quill.quill_commands import CommandRegistry
from quill.quill_datatypes import (
    END, QuillError, UnknownCommand, UnknownVariable, InconsistentIteration, render_error
)
from quill.quill_predicate import to_predicate

_NAME_CHARACTER = re.compile(r"[A-Za-z0-9]")
_DIGITS = re.compile(r"[0-9]+")


def _not_name_character(character) -> bool:
    return not (isinstance(character, str) and _NAME_CHARACTER.fullmatch(character))


class Context:
    """A cursor over ``buffer`` that reads, substitutes and dispatches commands."""

    def __init__(self, buffer: str, registry: Optional[CommandRegistry] = None,
                 index: int = 0, variables: Optional[Dict[str, Any]] = None,
                 debug: bool = False):
        self.buffer = buffer
        self.debug = debug
        self.index = index
        self.registry = registry if registry is not None else CommandRegistry()
        # One level deep: the table is ours, the values are shared.
        self.variables: Dict[str, Any] = dict(variables or {})

    def __repr__(self):
        return f"<Context index={self.index} buffer={self.buffer!r}>"

    def _dbg(self, *parts):
        if self.debug or os.environ.get("QUILL_DEBUG"):
            print("[DBG]", *parts, file=sys.stderr)

    # --- Errors ---

    def fail(self, error: QuillError, index: Optional[int] = None):
        """Attach this buffer and ``index`` to ``error`` and raise it."""
        raise error.locate(self.buffer, self.index if index is None else index)

    def pretty_error(self, error: Exception, index: Optional[int] = None):
        """Print buffer, caret and message to stderr, then exit the process."""
        if isinstance(error, QuillError):
            error.locate(self.buffer, self.index if index is None else index)
            rendered = render_error(error.buffer, error.index, str(error))
        else:
            rendered = render_error(self.buffer, self.index if index is None else index, str(error))
        print(rendered, file=sys.stderr)
        raise SystemExit(1)

    # --- Scoping ---

    def copy_variables(self, other: 'Context') -> None:
        for key, value in self.variables.items():
            other.variables[key] = value

    def clone(self) -> 'Context':
        """Same buffer, same index, a snapshot of the variables."""
        clone = Context(self.buffer, self.registry, self.index, debug=self.debug)
        self.copy_variables(clone)
        return clone

    def spawn(self, buffer: str) -> 'Context':
        """A fresh cursor over ``buffer`` carrying a snapshot of the variables."""
        context = Context(buffer, self.registry, debug=self.debug)
        self.copy_variables(context)
        return context

    # --- Consume ---

    def consume(self, length: int) -> None:
        self.index += length

    def consume_character(self) -> None:
        self.consume(1)

    def consume_whitespace(self) -> None:
        while self.seek_character() == ' ':
            self.consume_character()

    # --- Seek ---

    def seek_character(self) -> Optional[str]:
        if self.index < len(self.buffer):
            return self.buffer[self.index]
        return None

    def seek_token(self, token: str) -> bool:
        return self.buffer.startswith(token, self.index)

    # --- Read ---

    def _apply_read_options(self, consume_whitespace: bool) -> None:
        if consume_whitespace:
            self.consume_whitespace()

    def read_character(self) -> Optional[str]:
        character = self.seek_character()
        self.consume_character()
        return character

    def read_token(self, token: str) -> bool:
        if not self.seek_token(token):
            return False
        self.consume(len(token))
        return True

    async def _read_raw_character(self) -> Optional[str]:
        return self.read_character()

    async def read_unit(self) -> Any:
        """Read one character, variable value or substitution result.

        Returns ``None`` only at the end of the buffer. A substitution that
        produces no value reads as the empty string.
        """
        character = self.read_character()
        if character != '$':
            return character

        if self.seek_character() == '{':
            self.consume_character()
            command = await self.read_string(
                end_token='}',
                consume_end_token=True,
                consume_whitespace=False,
                end_on_line_end=False,
            )
            self._dbg("SUBST", repr(command))
            # Only the first command of the substitution is evaluated.
            result = await self.spawn(command).evaluate_command()
            if result is END or result is None:
                return ""
            return result

        if _not_name_character(self.seek_character()):
            return character

        start = self.index
        name = await self.read_variable_name()
        if name not in self.variables:
            self.fail(UnknownVariable(f"Unknown variable {json.dumps(name)}"), start)
        return self.variables[name]

    async def _read_digits(self, end_on_line_end: bool = True):
        """Read digit units; returns ``(value, digit_count, hit_line_end)``.

        Each unit counts as one digit place: a substituted "12" after a
        literal "1" gives 1 * 10 + 12.
        """
        value = None
        count = 0
        while True:
            index = self.index
            unit = await self.read_unit()
            if unit is None:
                self.index = index
                return value, count, False
            string = str(unit)
            if end_on_line_end and string == ';':
                return value, count, True
            if string == "":
                continue
            if not _DIGITS.fullmatch(string):
                self.index = index
                return value, count, False
            value = (value or 0) * 10 + int(string)
            count += 1

    async def read_int(self, *, consume_whitespace: bool = True, end_on_line_end: bool = True) -> Optional[int]:
        self._apply_read_options(consume_whitespace)
        start = self.index
        negate = self.read_token('-')

        integer, _, line_end = await self._read_digits(end_on_line_end)

        if integer is None:
            # A bare '-' is not a number; give it back unless ';' was consumed.
            if negate and not line_end:
                self.index = start
        elif negate:
            integer = -integer

        self._apply_read_options(consume_whitespace)
        return integer

    async def read_float(self, *, consume_whitespace: bool = True, end_on_line_end: bool = True):
        """Read ``[-]digits[.digits]``; returns an int when there is no fraction."""
        self._apply_read_options(consume_whitespace)
        start = self.index
        negate = self.read_token('-')

        integer, _, line_end = await self._read_digits(end_on_line_end)
        number = integer

        dot = self.index
        if not line_end and self.read_token('.'):
            fractional, digits, _ = await self._read_digits(end_on_line_end)
            if fractional is None:
                # "3." followed by a non-digit: the dot is not part of the number.
                self.index = dot
            else:
                scale = 10 ** digits
                number = ((integer or 0) * scale + fractional) / scale

        if number is None:
            # A consumed ';' stays consumed, as in read_int.
            if not line_end:
                self.index = start
        elif negate:
            number = -number

        self._apply_read_options(consume_whitespace)
        return number

    async def read_string(self, *, end_token=None, consume_end_token: Optional[bool] = None,
                          reader=None, consume_whitespace: bool = True,
                          end_on_line_end: bool = True) -> str:
        """Read units into a string until the end token.

        ``end_token`` is a literal or a predicate. It defaults to ``"`` when
        the read opens with a quote, else a space. The end token is consumed
        unless it is a space. ``\\`` escapes the next unit.
        """
        self._apply_read_options(consume_whitespace)

        if end_token is None:
            end_token = '"' if self.read_token('"') else ' '
        is_end_token = to_predicate(end_token)

        if consume_end_token is None:
            consume_end_token = not is_end_token(' ')

        if reader is None:
            reader = self.read_unit

        parts: List[str] = []
        escape = False
        while True:
            index = self.index
            unit = await reader()

            if unit is None:
                self.index = index
                break

            string = str(unit)

            if escape:
                parts.append(string)
                escape = False
                continue

            if end_on_line_end and string == ';':
                break

            if is_end_token(string):
                if not consume_end_token:
                    self.index = index
                break

            if string == '\\':
                escape = True
            else:
                parts.append(string)

        self._apply_read_options(consume_whitespace)
        return "".join(parts)

    async def read_variable_name(self, *, consume_whitespace: bool = False) -> str:
        # Raw characters: no substitution inside a name.
        return await self.read_string(
            end_token=_not_name_character,
            consume_end_token=False,
            reader=self._read_raw_character,
            consume_whitespace=consume_whitespace,
            end_on_line_end=False,
        )

    # --- Commands ---

    async def get_command(self):
        """Read a command name; returns its handler or ``END`` for an empty name."""
        self.consume_whitespace()
        index = self.index

        name = await self.read_string()
        if name == "":
            return END

        handler = self.registry.lookup(name)
        if handler is None:
            self.fail(UnknownCommand(f"Unknown command {json.dumps(name)}"), index)
        self._dbg("CALL", name, "at", index)
        return handler

    async def evaluate_command(self) -> Any:
        command = await self.get_command()
        if command is END:
            return END
        return await command(self)

    async def evaluate_command_total(self) -> None:
        while True:
            output = await self.evaluate_command()
            if output is END:
                break

    async def iterate(self, variable: str, iterable: Iterable) -> List[int]:
        """Run the rest of the buffer once per element, each in its own clone.

        Every clone starts at the current index and must consume the same
        number of characters; the parent then advances by that count.
        """
        offsets: List[int] = []
        for element in iterable:
            clone = self.clone()
            clone.variables[variable] = element

            before = clone.index
            await clone.evaluate_command_total()
            offset = clone.index - before
            offsets.append(offset)

            self._dbg("ITER", variable, "=", repr(element), "offset", offset)
            if offset != offsets[0]:
                iteration = len(offsets) - 1
                delta = offset - offsets[0]
                self.fail(InconsistentIteration(
                    f"Inconsistent offsets! Offset for first iteration was {offsets[0]}, "
                    f"offset for iteration {iteration} was {offset} ({delta:+d})",
                    iteration=iteration,
                    delta=delta,
                ))

        if offsets:
            self.consume(offsets[0])
        return offsets
