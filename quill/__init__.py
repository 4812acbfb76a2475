from quill.quill_runtime import ScriptRunner, ExecutionResult, QuillConfig, load_config
from quill.quill_context import Context
from quill.quill_commands import CommandRegistry, quill_command
from quill.quill_datatypes import (
    END, QuillError, UnknownCommand, UnknownVariable, MalformedArgument, InconsistentIteration
)
