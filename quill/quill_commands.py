"""
The command registry: a mapping from command name to an async handler.
"""
import inspect
from typing import Any, Awaitable, Callable, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from quill.quill_context import Context

Command = Callable[['Context'], Awaitable[Any]]


def quill_command(name: str):
    """A decorator to mark a method as a Quill command bound under ``name``."""
    def mark(func):
        func._quill_name = name
        return func
    return mark


class CommandRegistry:
    """Name -> handler mapping, built once at startup and shared by reference."""

    def __init__(self):
        self._commands: Dict[str, Command] = {}

    def register(self, name: str, handler: Command) -> None:
        self._commands[name] = handler

    def lookup(self, name: str) -> Optional[Command]:
        return self._commands.get(name)

    def bind(self, obj) -> List[str]:
        """Register every ``@quill_command`` method of ``obj``; returns the bound names."""
        bound = []
        for _, member in inspect.getmembers(obj):
            if not callable(member):
                continue
            name = getattr(member, "_quill_name", None)
            if name is None:
                func = getattr(member, "__func__", None)
                name = getattr(func, "_quill_name", None)
            if not isinstance(name, str):
                continue
            self.register(name, member)
            bound.append(name)
        return bound

    def names(self) -> List[str]:
        return sorted(self._commands)

    def __contains__(self, name) -> bool:
        return name in self._commands

    def __len__(self) -> int:
        return len(self._commands)

    def __repr__(self):
        return f"<CommandRegistry {self.names()!r}>"
