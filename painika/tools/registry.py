"""Tool registry and executor."""

from collections.abc import Iterable
from typing import Any

from painika.exceptions import ToolNotFound
from painika.models.tools import ToolExecution
from painika.tools.base import ToolDefinition
from painika.utils.logging import get_logger

logger = get_logger(__name__)


class ToolRegistry:
    """Registry mapping tool names to definitions, running calls under a uniform lifecycle.

    Every execution is kept in the execution log for the life of the registry
    (one per session), so the log grows with each call; nothing is evicted.
    Callers wanting a bounded log start a fresh session.
    """

    def __init__(self, tools: Iterable[ToolDefinition] | None = None):
        """Initialize tools registry.

        Args:
            tools: Tools to register up front
        """
        self._tools: dict[str, ToolDefinition] = {}
        self._executions: dict[str, ToolExecution] = {}

        for tool in tools or []:
            self.register_tool(tool)

    def register_tool(self, tool: ToolDefinition) -> None:
        """Register a tool; a later registration under the same name replaces the earlier one."""
        if tool.name in self._tools:
            logger.debug(f"Replacing registered tool: {tool.name}")
        self._tools[tool.name] = tool

    async def execute(self, name: str, params: Any) -> ToolExecution:
        """Run a tool and return its execution record.

        Never raises for tool failures: unknown tools, invalid parameters and
        errors raised by the tool itself all end in the ``error`` state.
        """
        execution = ToolExecution(name=name, input=params if isinstance(params, dict) else {})
        self._executions[execution.id] = execution

        tool = self._tools.get(name)
        if tool is None:
            error = ToolNotFound(f"Tool {name} not found")
            logger.error(f"Unknown tool requested: {name}")
            execution.fail(str(error))
            return execution

        execution.start()
        logger.debug(f"Executing tool: {name} with input: {params}")

        try:
            validated = tool.parse_input(params)
            output = await tool.handler(validated)
        except Exception as e:
            logger.warning(f"Tool {name} failed: {e}")
            execution.fail(str(e) or type(e).__name__)
        else:
            logger.debug(f"Tool {name} succeeded: {str(output)[:100]}...")
            execution.complete(output)

        return execution

    def describe(self) -> list[dict[str, Any]]:
        """Tool descriptors handed to the model client."""
        return [tool.describe() for tool in self._tools.values()]

    def get_tool_names(self) -> list[str]:
        """Get list of all registered tool names."""
        return list(self._tools.keys())

    def has_tool(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools

    def get_execution(self, execution_id: str) -> ToolExecution | None:
        """Look up a past execution by id; the log keeps every execution ever run."""
        return self._executions.get(execution_id)


def create_default_registry() -> ToolRegistry:
    """Registry preloaded with the built-in shell and filesystem tools."""
    from painika.tools.filesystem import (
        create_edit_file_tool,
        create_list_files_tool,
        create_make_dir_tool,
        create_read_file_tool,
        create_write_file_tool,
    )
    from painika.tools.shell import create_bash_tool

    return ToolRegistry(
        [
            create_bash_tool(),
            create_read_file_tool(),
            create_write_file_tool(),
            create_edit_file_tool(),
            create_list_files_tool(),
            create_make_dir_tool(),
        ]
    )
