# =============================================================================
# core/registry.py  —  Tool Registry
# =============================================================================
#
# The registry maps a tool name to its ToolDefinition.  It is built ONCE,
# synchronously, before the server accepts any call (see core/catalog.py),
# and then frozen.  After that it is read-only, so concurrent invocations
# can share it without locks.
#
# RULES:
#   - duplicate names are a startup error, never a silent overwrite
#   - registration order is preserved (server-info lists tools in it)
#   - no registration after freeze()
# =============================================================================

from dataclasses import dataclass
from typing import Awaitable, Callable, Iterator, Optional, Union

from core.config import ServerConfig
from core.contracts import InputContract, OutputContract, TEXT_RESULT
from core.errors import DuplicateToolError, RegistryFrozenError
from core.http import ExternalCallOrchestrator
from core.models import InvocationResult


@dataclass(frozen=True)
class ToolContext:
    """What a handler may use besides its arguments.

    Network-bound handlers must use `http`; nobody reads globals.
    """

    config: ServerConfig
    http: ExternalCallOrchestrator


Handler = Callable[[dict, ToolContext], Union[InvocationResult, Awaitable[InvocationResult]]]


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    input_contract: InputContract
    handler: Handler
    output_contract: OutputContract = TEXT_RESULT

    def input_schema(self) -> dict:
        return self.input_contract.to_json_schema()


class ToolRegistry:
    def __init__(self) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        self._frozen = False

    def register(self, definition: ToolDefinition) -> None:
        if self._frozen:
            raise RegistryFrozenError(
                f"Cannot register '{definition.name}': registry is frozen"
            )
        if definition.name in self._tools:
            raise DuplicateToolError(f"Tool already registered: {definition.name}")
        self._tools[definition.name] = definition

    def freeze(self) -> "ToolRegistry":
        self._frozen = True
        return self

    def lookup(self, name: str) -> Optional[ToolDefinition]:
        return self._tools.get(name)

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)
