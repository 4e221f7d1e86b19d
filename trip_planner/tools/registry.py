"""
Tool registry: the catalogue of capabilities the model may invoke.

Each tool is registered with an async handler and a ToolDeclaration under the
same name, so the advertised catalogue and the executable set cannot drift.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from trip_planner.errors import ConfigurationError, ToolExecutionError, UnknownToolError
from trip_planner.models import ToolDeclaration

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Dict[str, Any]], Awaitable[Any]]


@dataclass(frozen=True)
class RegisteredTool:
    name: str
    handler: ToolHandler
    declaration: ToolDeclaration
    data_key: Optional[str] = None


class ToolRegistry:
    """Maps tool names to handlers and declarations."""

    def __init__(self) -> None:
        self._handlers: Dict[str, ToolHandler] = {}
        self._declarations: Dict[str, ToolDeclaration] = {}
        self._data_keys: Dict[str, Optional[str]] = {}

    def register(
        self,
        name: str,
        handler: ToolHandler,
        declaration: ToolDeclaration,
        *,
        data_key: Optional[str] = None,
    ) -> None:
        """Register a tool.

        Args:
            name: Unique tool name, as the model will request it.
            handler: Async callable taking the argument mapping.
            declaration: Schema advertised to the model; its name must equal `name`.
            data_key: Slot in the aggregated chat data for this tool's results.

        Raises:
            ConfigurationError: duplicate name or mismatched declaration.
        """
        if name in self._handlers or name in self._declarations:
            raise ConfigurationError(f"Tool already registered: {name}")
        if declaration.name != name:
            raise ConfigurationError(
                f"Declaration name '{declaration.name}' does not match tool name '{name}'"
            )
        self._handlers[name] = handler
        self._declarations[name] = declaration
        self._data_keys[name] = data_key
        logger.debug("Registered tool %s (data_key=%s)", name, data_key)

    def validate(self) -> None:
        """Check that every handler has a declaration and vice versa."""
        handlers = set(self._handlers)
        declared = set(self._declarations)
        if handlers != declared:
            raise ConfigurationError(
                "Tool handlers and declarations differ",
                details=f"undeclared={sorted(handlers - declared)} unhandled={sorted(declared - handlers)}",
            )

    def get_declarations(self) -> List[ToolDeclaration]:
        return list(self._declarations.values())

    def get(self, name: str) -> RegisteredTool:
        if name not in self._handlers:
            raise UnknownToolError(name)
        return RegisteredTool(name, self._handlers[name], self._declarations[name], self._data_keys[name])

    def data_key(self, name: str) -> Optional[str]:
        return self._data_keys.get(name)

    @property
    def names(self) -> List[str]:
        return list(self._handlers)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    async def execute(self, name: str, args: Dict[str, Any]) -> Any:
        """Invoke the named tool.

        Raises:
            UnknownToolError: `name` is not registered.
            ToolExecutionError: the handler raised; the original error is chained.
                A ValueError (including pydantic's ValidationError) means the
                arguments were rejected and is marked not retryable.
        """
        tool = self.get(name)
        try:
            return await tool.handler(args)
        except ToolExecutionError:
            raise
        except ValueError as e:
            raise ToolExecutionError(name, str(e) or type(e).__name__, retryable=False) from e
        except Exception as e:
            raise ToolExecutionError(name, str(e) or type(e).__name__) from e
