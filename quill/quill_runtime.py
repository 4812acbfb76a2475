# quill_runtime.py

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Dict, List, Literal, Optional

import yaml

from quill.quill_commands import CommandRegistry
from quill.quill_context import Context
from quill.quill_datatypes import QuillError, render_error
from quill.quill_stdlib import StdLib

# ===================================================================
# 1. Configuration
# ===================================================================

DEFAULT_CONFIG_NAME = "quill.yaml"


@dataclass
class QuillConfig:
    """Settings for the shell and runner."""
    prompt: str = "> "
    banner: Optional[str] = None
    debug: bool = False
    # The first error ends the shell; set False to report and keep reading.
    exit_on_error: bool = True


def load_config(path: Optional[str] = None) -> QuillConfig:
    """Load a QuillConfig from YAML.

    Lookup order: ``path``, then ``$QUILL_CONFIG``, then ``./quill.yaml``.
    A missing file yields the defaults; ``$QUILL_DEBUG`` forces ``debug``.
    """
    explicit = path or os.environ.get("QUILL_CONFIG")
    candidate = Path(explicit) if explicit else Path.cwd() / DEFAULT_CONFIG_NAME

    data: Dict[str, Any] = {}
    if candidate.exists():
        loaded = yaml.safe_load(candidate.read_text(encoding="utf-8"))
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ValueError(f"{candidate}: config must be a mapping, got {type(loaded).__name__}")
        data = loaded
    elif explicit:
        raise FileNotFoundError(f"config file not found: {candidate}")

    known = {f.name for f in fields(QuillConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"{candidate}: unknown config keys: {', '.join(unknown)}")

    config = QuillConfig(**data)
    if os.environ.get("QUILL_DEBUG"):
        config.debug = True
    return config


# ===================================================================
# 2. Script Execution
# ===================================================================

@dataclass
class ExecutionResult:
    """The structured result of one evaluation run."""
    status: Literal['success', 'error']
    value: Any = None
    error_message: Optional[str] = None
    error_index: Optional[int] = None
    error_buffer: Optional[str] = None
    side_effects: List[Dict] = field(default_factory=list)

    def format_error(self) -> str:
        """Renders the offending buffer with a caret under the error offset."""
        if self.status != 'error':
            return ""
        msg = str(self.error_message or "Unknown error")
        if self.error_buffer is None:
            return msg
        return render_error(self.error_buffer, self.error_index, msg)


class ScriptRunner:
    """Runs Quill source against one command registry."""

    def __init__(self, config: Optional[QuillConfig] = None,
                 registry: Optional[CommandRegistry] = None,
                 on_effect: Optional[Callable[[Dict], None]] = None):
        self.config = config or QuillConfig()

        self.stdlib = StdLib(on_effect=on_effect)
        if registry is None:
            registry = CommandRegistry()
            registry.bind(self.stdlib)
        self.registry = registry

    async def handle_script(self, source_code: str) -> ExecutionResult:
        """Evaluate one line of source in a fresh cursor."""
        self.stdlib.side_effects = []
        context = Context(source_code, self.registry, debug=self.config.debug)
        try:
            value = await context.evaluate_command_total()
        except QuillError as e:
            e.locate(context.buffer, context.index)
            return self._error_result(str(e), e.index, e.buffer)
        except Exception as e:
            # Python-level failures inside a command still land at the cursor.
            return self._error_result(f"InternalError: {e}", context.index, context.buffer)

        return ExecutionResult(status='success', value=value, side_effects=self.stdlib.side_effects)

    def _error_result(self, msg: str, index: Optional[int], buffer: Optional[str]) -> ExecutionResult:
        result = ExecutionResult(
            status='error',
            error_message=msg,
            error_index=index,
            error_buffer=buffer,
            side_effects=self.stdlib.side_effects,
        )
        # Emit consolidated stderr side-effect
        self.stdlib.side_effects.append({'topics': ['stderr'], 'message': result.format_error()})
        return result
