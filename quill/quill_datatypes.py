"""
Core data types for the Quill runtime: the end-of-sequence sentinel and the
error hierarchy raised by the cursor and the standard commands.

Values themselves are plain Python objects: ``int``, ``float``, ``str``,
``range`` (or any iterable) and ``None`` for an absent read.
"""
from typing import Optional


class _End:
    """Signals that a command sequence has no more commands."""
    __slots__ = ()

    def __repr__(self):
        return "END"

    def __bool__(self):
        return False


END = _End()


class QuillError(Exception):
    """Base class for every parse/evaluation error in Quill.

    ``index`` and ``buffer`` locate the error in the text that was being read
    when it was raised. Errors raised inside a ``${...}`` substitution point
    into the substitution text, not the outer line.
    """
    kind = "QuillError"

    def __init__(self, message: str, index: Optional[int] = None, buffer: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.index = index
        self.buffer = buffer

    def locate(self, buffer: str, index: int) -> 'QuillError':
        # Innermost location wins; outer cursors must not overwrite it.
        if self.buffer is None:
            self.buffer = buffer
            self.index = index
        return self

    def __str__(self):
        return f"{self.kind}: {self.message}"


class UnknownCommand(QuillError):
    kind = "UnknownCommand"


class UnknownVariable(QuillError):
    kind = "UnknownVariable"


class MalformedArgument(QuillError):
    kind = "MalformedArgument"


class InconsistentIteration(QuillError):
    kind = "InconsistentIteration"

    def __init__(self, message: str, iteration: int, delta: int, **kwargs):
        super().__init__(message, **kwargs)
        self.iteration = iteration
        self.delta = delta


def render_error(buffer: str, index: Optional[int], message: str) -> str:
    """Render the buffer, a caret under ``index`` and the message."""
    lines = [buffer]
    if index is not None:
        lines.append(" " * max(index, 0) + "^")
    lines.append(message)
    return "\n".join(lines)
