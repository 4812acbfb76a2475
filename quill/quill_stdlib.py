"""
The standard Quill commands.

Each command receives the live cursor positioned just after its own name and
consumes exactly its own arguments through the cursor's public readers.
"""
import asyncio
import collections.abc
import json
from typing import Any, Callable, Dict, List, Optional

from quill.quill_commands import quill_command
from quill.quill_context import Context
from quill.quill_datatypes import END, MalformedArgument


def _never(_unit) -> bool:
    return False


class StdLib:
    """Python implementations of the Quill built-ins."""

    def __init__(self, on_effect: Optional[Callable[[Dict], None]] = None):
        self.side_effects: List[Dict] = []
        # Called with each effect as it is emitted (e.g. the REPL prints live).
        self.on_effect = on_effect

    def _emit(self, topic: str, message: str) -> None:
        event = {"topics": [topic], "message": message}
        self.side_effects.append(event)
        if self.on_effect is not None:
            self.on_effect(event)

    @quill_command("range")
    async def _range(self, context: Context):
        index = context.index
        start = await context.read_int()
        if start is None:
            context.fail(MalformedArgument("Expected [1, 3] integers, got 0"), index)

        stop = await context.read_int()
        step_index = context.index
        step = await context.read_int()

        if stop is None:
            start, stop = 0, start
        if step is None:
            step = 1
        if step == 0:
            context.fail(MalformedArgument("range step must not be 0"), step_index)
        return range(start, stop, step)

    @quill_command("say")
    async def _say(self, context: Context):
        message = await context.read_string(end_token=_never)
        self._emit("stdout", message)

    @quill_command("for")
    async def _for(self, context: Context):
        index = context.index
        variable = await context.read_variable_name()
        if not variable:
            context.fail(MalformedArgument("Expected a variable name after \"for\""), index)

        context.consume_whitespace()
        index = context.index
        specifier = await context.read_string()
        if specifier != "in":
            context.fail(MalformedArgument(f"Unexpected specifier {json.dumps(specifier)}, expected \"in\""), index)

        index = context.index
        iterable = await context.evaluate_command()
        if iterable is END or not isinstance(iterable, collections.abc.Iterable):
            context.fail(MalformedArgument(f"Expected an iterable after \"in\", got {iterable!r}"), index)

        index = context.index
        action = await context.read_string()
        if action != "do":
            context.fail(MalformedArgument(f"Unexpected action {json.dumps(action)}, expected \"do\""), index)

        offsets = await context.iterate(variable, iterable)
        if not offsets:
            self._emit("stderr", "Empty iterable, command never evaluated, offsets not applied")
            self._emit("stderr", "command (what comes after \"do\") might be evaluated outside of the for loop")

    @quill_command("{")
    async def _block(self, context: Context):
        command = await context.read_string(end_token="}", end_on_line_end=False)
        # Unlike ${...}, a block runs every command it contains.
        await context.spawn(command).evaluate_command_total()

    @quill_command("sleep")
    async def _sleep(self, context: Context):
        index = context.index
        ms = await context.read_int()
        if ms is None:
            context.fail(MalformedArgument("sleep expects a duration in milliseconds"), index)
        # Negative durations sleep for 0 ms.
        await asyncio.sleep(max(ms, 0) / 1000)

    @quill_command("return")
    async def _return(self, context: Context) -> Any:
        return await context.read_string()
