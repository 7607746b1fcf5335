"""
effects-as-data - Business logic as data, effects at the edge.

Business functions are generator functions that yield command descriptors
instead of performing side effects. The interpreter dispatches each command
to a handler, resumes the function with the result (or raises the failure at
the ``yield``), runs lists of commands concurrently, and reports every step
through telemetry callbacks. The same functions are tested by declaring the
expected commands and injected results, with no handler involved.

Example:
    >>> from effects_as_data import cmd, run, verify
    >>>
    >>> def get_names():
    ...     people = yield cmd("httpGet", url="/people")
    ...     return [p["name"] for p in people["results"]]
    >>>
    >>> await run({"httpGet": http_get}, get_names)
    ['Luke']
"""

from effects_as_data.api import build_functions
from effects_as_data.commands import (
    Command,
    call,
    cmd,
    command_type,
    echo,
    is_batch,
)
from effects_as_data.computation import (
    Computation,
    Done,
    Failed,
    Suspended,
)
from effects_as_data.config import (
    Frame,
    InvocationConfig,
    default_config,
    new_cid,
)
from effects_as_data.dispatch import (
    CommandDispatcher,
    Dispatcher,
    Handler,
    HandlerContext,
)
from effects_as_data.equality import first_difference, structural_equal
from effects_as_data.errors import (
    CommandMismatch,
    ComputationFinishedError,
    EffectsAsDataError,
    InterpreterAbort,
    InvalidCommandError,
    OutcomeMismatch,
    ProtocolViolation,
    ScriptDefinitionError,
    ScriptExhausted,
    UnconsumedExpectations,
    UnhandledCommandError,
)
from effects_as_data.handlers import builtin_handlers, with_builtins
from effects_as_data.interpreter import (
    Interpreter,
    RunResult,
    run,
    run_safe,
    run_sync,
)
from effects_as_data.result import Err, Ok, Result
from effects_as_data.telemetry import (
    CallCompleteRecord,
    CallRecord,
    CommandCompleteRecord,
    CommandRecord,
    TelemetryRecord,
    TelemetryRecorder,
    logging_callbacks,
)
from effects_as_data.testing import Script, ScriptedDispatcher, verify

__version__ = "0.1.0"

__all__ = [
    # Commands
    "Command",
    "call",
    "cmd",
    "command_type",
    "echo",
    "is_batch",
    # Computation
    "Computation",
    "Done",
    "Failed",
    "Suspended",
    # Config
    "Frame",
    "InvocationConfig",
    "default_config",
    "new_cid",
    # Dispatch
    "CommandDispatcher",
    "Dispatcher",
    "Handler",
    "HandlerContext",
    "builtin_handlers",
    "with_builtins",
    # Interpreter
    "Interpreter",
    "RunResult",
    "build_functions",
    "run",
    "run_safe",
    "run_sync",
    # Result
    "Err",
    "Ok",
    "Result",
    # Telemetry
    "CallCompleteRecord",
    "CallRecord",
    "CommandCompleteRecord",
    "CommandRecord",
    "TelemetryRecord",
    "TelemetryRecorder",
    "logging_callbacks",
    # Verifier
    "Script",
    "ScriptedDispatcher",
    "first_difference",
    "structural_equal",
    "verify",
    # Errors
    "CommandMismatch",
    "ComputationFinishedError",
    "EffectsAsDataError",
    "InterpreterAbort",
    "InvalidCommandError",
    "OutcomeMismatch",
    "ProtocolViolation",
    "ScriptDefinitionError",
    "ScriptExhausted",
    "UnconsumedExpectations",
    "UnhandledCommandError",
]
