"""
Stop-condition helpers for Quill's string reads.
"""
from typing import Any, Callable

Predicate = Callable[[Any], bool]


def to_predicate(maybe) -> Predicate:
    """Normalize a literal stop value or a test function into a test function."""
    if callable(maybe):
        return maybe
    return lambda value: value == maybe
