# =============================================================================
# core/dispatcher.py  —  Invocation Dispatcher
# =============================================================================
#
# One call, one pass through a small state machine:
#
#   RECEIVED ──▶ VALIDATING ──▶ EXECUTING ──▶ FORMATTING ──▶ COMPLETED
#       │             │              │              │
#       └─────────────┴──────────────┴──────────────┴──▶ FAILED
#
#   RECEIVED    look the tool up              (missing → UnknownTool)
#   VALIDATING  input contract                (→ InvalidInput + field names)
#   EXECUTING   handler(args, ctx)            (→ DomainError / orchestrator kind)
#   FORMATTING  output contract               (→ InternalError)
#
# dispatch() never raises.  It returns an InvocationResult or an
# InvocationError, and that is the only place a typed failure becomes a
# display string.  Task cancellation (asyncio.CancelledError) is the one
# thing allowed through, because it belongs to the event loop, not to us.
# =============================================================================

import inspect
import logging
from enum import Enum
from typing import Any, Union

from core.errors import ErrorKind, GatewayError, InvocationError, ValidationError
from core.log import log_failure, log_request, log_response, log_status
from core.models import InvocationResult
from core.registry import ToolContext, ToolRegistry

logger = logging.getLogger(__name__)


class InvocationState(str, Enum):
    RECEIVED = "received"
    VALIDATING = "validating"
    EXECUTING = "executing"
    FORMATTING = "formatting"
    COMPLETED = "completed"
    FAILED = "failed"


Envelope = Union[InvocationResult, InvocationError]


class Dispatcher:
    """Routes a tool call through validation, execution and formatting."""

    def __init__(self, registry: ToolRegistry, context: ToolContext):
        self.registry = registry
        self.context = context

    async def dispatch(self, tool_name: str, raw_args: Any = None) -> Envelope:
        log_request(tool_name, raw_args if raw_args is not None else {})
        state = InvocationState.RECEIVED

        definition = self.registry.lookup(tool_name)
        if definition is None:
            return self._fail(
                tool_name, state,
                InvocationError(ErrorKind.UNKNOWN_TOOL, f"Unknown tool: '{tool_name}'", tool=tool_name),
            )

        try:
            state = self._advance(tool_name, InvocationState.VALIDATING)
            args = definition.input_contract.validate(raw_args)

            state = self._advance(tool_name, InvocationState.EXECUTING)
            result = definition.handler(args, self.context)
            if inspect.isawaitable(result):
                result = await result

            state = self._advance(tool_name, InvocationState.FORMATTING)
            result = definition.output_contract.validate(result)
        except ValidationError as exc:
            return self._fail(tool_name, state, InvocationError(
                ErrorKind.INVALID_INPUT,
                f"Invalid arguments for '{tool_name}': {exc.message}",
                tool=tool_name,
                fields=exc.fields,
            ))
        except GatewayError as exc:
            if exc.kind is ErrorKind.INTERNAL_ERROR:
                logger.error("%s broke its output contract: %s", tool_name, exc.message)
                return self._fail(tool_name, state, _internal_error(tool_name))
            return self._fail(tool_name, state, InvocationError(
                exc.kind,
                exc.message,
                tool=tool_name,
                status=getattr(exc, "status", None),
            ))
        except Exception:  # noqa: BLE001
            logger.exception("Unhandled error while running %s", tool_name)
            return self._fail(tool_name, state, _internal_error(tool_name))

        self._advance(tool_name, InvocationState.COMPLETED)
        log_response(tool_name, result.to_dict())
        return result

    def _advance(self, tool_name: str, state: InvocationState) -> InvocationState:
        logger.debug("%s → %s", tool_name, state.value)
        return state

    def _fail(self, tool_name: str, state: InvocationState, error: InvocationError) -> InvocationError:
        log_status(f"{tool_name} failed while {state.value}")
        log_failure(tool_name, error.kind.value, error.message)
        return error


def _internal_error(tool_name: str) -> InvocationError:
    return InvocationError(
        ErrorKind.INTERNAL_ERROR,
        f"Tool '{tool_name}' failed unexpectedly",
        tool=tool_name,
    )
