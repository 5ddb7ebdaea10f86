# =============================================================================
# core/errors.py  —  The Error Taxonomy
# =============================================================================
#
# Every way a tool call can fail has exactly one ErrorKind.  Failures are
# raised as typed exceptions (GatewayError subclasses) carrying structured
# fields, and are only turned into a display string at the dispatcher
# boundary, where they become an InvocationError.
#
#   UnknownTool        → no tool registered under that name
#   InvalidInput       → arguments violate the tool's input contract
#   DomainError        → the handler rejected the request (divide by zero,
#                        empty query, bad range, bad timezone, no credential)
#   NetworkFailure     → DNS, refused connection, reset ...
#   Timeout            → the outbound call missed its deadline
#   UpstreamFailure    → the third-party API answered with a non-2xx status
#   MalformedResponse  → the third-party payload could not be understood
#   InternalError      → a handler broke its own output contract, or crashed
# =============================================================================

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    UNKNOWN_TOOL = "UnknownTool"
    INVALID_INPUT = "InvalidInput"
    DOMAIN_ERROR = "DomainError"
    NETWORK_FAILURE = "NetworkFailure"
    TIMEOUT = "Timeout"
    UPSTREAM_FAILURE = "UpstreamFailure"
    MALFORMED_RESPONSE = "MalformedResponse"
    INTERNAL_ERROR = "InternalError"


class GatewayError(Exception):
    """Base class for every failure the gateway knows how to report."""

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(GatewayError):
    """Arguments (or a prompt request) did not satisfy the declared contract."""

    kind = ErrorKind.INVALID_INPUT

    def __init__(self, problems: dict[str, str]):
        self.problems = dict(problems)
        detail = "; ".join(f"{name}: {reason}" for name, reason in self.problems.items())
        super().__init__(detail or "invalid arguments")

    @property
    def fields(self) -> tuple:
        return tuple(self.problems)


class DomainError(GatewayError):
    """A business rule rejected the request.  The message is shown verbatim."""

    kind = ErrorKind.DOMAIN_ERROR


class ContractViolation(GatewayError):
    """A handler produced a value that breaks its own output contract."""

    kind = ErrorKind.INTERNAL_ERROR


class OrchestratorError(GatewayError):
    """An outbound HTTP call failed.

    `service` is the host name only; full URLs can carry query strings with
    user input, so they stay out of messages.
    """

    def __init__(
        self,
        kind: ErrorKind,
        service: str,
        message: str,
        status: Optional[int] = None,
        status_text: str = "",
        detail: str = "",
    ):
        super().__init__(message)
        self.kind = kind
        self.service = service
        self.status = status
        self.status_text = status_text
        self.detail = detail


# --- Startup-time errors (never reach a caller) -----------------------------

class DuplicateToolError(ValueError):
    """A second tool was registered under an existing name."""


class RegistryFrozenError(RuntimeError):
    """Registration attempted after the registry was frozen."""


# -----------------------------------------------------------------------------
# InvocationError: the uniform error envelope
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class InvocationError:
    """What a caller sees when a tool call fails.

    `kind` is for handling policy inside the process.  Only `message` is sent
    over MCP.
    """

    kind: ErrorKind
    message: str
    tool: str = ""
    fields: tuple = ()
    status: Optional[int] = None

    def __str__(self) -> str:
        return self.message
