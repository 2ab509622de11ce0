"""Shell command tool."""

import asyncio
from typing import Any

from painika.models.tools import ToolParameter
from painika.tools.base import ToolDefinition
from painika.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 120


async def run_bash(params: dict[str, Any]) -> dict[str, Any]:
    """Run a command through ``bash -c`` and capture its output.

    A non-zero exit code is reported in the output, not raised.
    """
    command = params["command"]
    timeout = params.get("timeout") or DEFAULT_TIMEOUT_SECONDS

    logger.info(f"Executing bash command: {command}")
    process = await asyncio.create_subprocess_exec(
        "bash",
        "-c",
        command,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except TimeoutError:
        process.kill()
        await process.wait()
        raise TimeoutError(f"Command timed out after {timeout} seconds: {command}") from None

    return {
        "output": stdout.decode("utf-8", errors="replace").strip(),
        "error": stderr.decode("utf-8", errors="replace").strip() or None,
        "exit_code": process.returncode,
    }


def create_bash_tool() -> ToolDefinition:
    return ToolDefinition(
        name="bash",
        description="Execute bash commands",
        parameters=[
            ToolParameter(name="command", type="string", description="Command line passed to bash -c"),
            ToolParameter(
                name="timeout",
                type="number",
                description="Seconds before the command is killed",
                required=False,
                default=DEFAULT_TIMEOUT_SECONDS,
            ),
        ],
        handler=run_bash,
    )
