"""Filesystem tools: read, write, edit, list and create directories."""

import stat
from datetime import datetime
from pathlib import Path
from typing import Any

from painika.models.tools import ToolParameter
from painika.tools.base import ToolDefinition


async def read_file(params: dict[str, Any]) -> dict[str, Any]:
    path = Path(params["path"])
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {params['path']}")

    content = path.read_text(encoding="utf-8", errors="replace")
    return {"content": content, "size": path.stat().st_size}


async def write_file(params: dict[str, Any]) -> dict[str, Any]:
    path = Path(params["path"])
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(params["content"], encoding="utf-8")
    return {"path": params["path"], "size": path.stat().st_size}


async def edit_file(params: dict[str, Any]) -> dict[str, Any]:
    """Replace the first occurrence of ``old_content`` in an existing file."""
    path = Path(params["path"])
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {params['path']}")

    content = path.read_text(encoding="utf-8")
    if params["old_content"] not in content:
        raise ValueError(f"Content not found in file: {params['old_content']}")

    updated = content.replace(params["old_content"], params["new_content"], 1)
    path.write_text(updated, encoding="utf-8")
    return {"path": params["path"], "size": path.stat().st_size}


async def make_dir(params: dict[str, Any]) -> dict[str, Any]:
    """Create a directory; ``recursive`` also creates parents and tolerates an existing path."""
    path = Path(params["path"])
    recursive = params["recursive"]

    existed = path.is_dir()
    try:
        path.mkdir(parents=recursive, exist_ok=recursive)
    except OSError as e:
        raise OSError(f"Failed to create directory: {params['path']} ({e.strerror or e})") from e

    return {"path": params["path"], "created": not existed}


def _format_entry(entry: Path) -> str:
    info = entry.lstat()
    modified = datetime.fromtimestamp(info.st_mtime).strftime("%b %d %H:%M")
    name = entry.name + ("/" if stat.S_ISDIR(info.st_mode) else "")
    return f"{stat.filemode(info.st_mode)} {info.st_size:>10} {modified} {name}"


async def list_files(params: dict[str, Any]) -> dict[str, Any]:
    path = Path(params["path"])
    if not path.exists():
        raise FileNotFoundError(f"Directory not found: {params['path']}")
    if not path.is_dir():
        raise NotADirectoryError(f"Not a directory: {params['path']}")

    entries = sorted(path.iterdir(), key=lambda entry: entry.name)
    return {"files": [_format_entry(entry) for entry in entries], "path": params["path"]}


def create_read_file_tool() -> ToolDefinition:
    return ToolDefinition(
        name="read_file",
        description="Read a file from the filesystem",
        parameters=[ToolParameter(name="path", type="string", description="Path of the file to read")],
        handler=read_file,
    )


def create_write_file_tool() -> ToolDefinition:
    return ToolDefinition(
        name="write_file",
        description="Write content to a file, replacing it if it exists",
        parameters=[
            ToolParameter(name="path", type="string", description="Path of the file to write"),
            ToolParameter(name="content", type="string", description="Full file content"),
        ],
        handler=write_file,
    )


def create_edit_file_tool() -> ToolDefinition:
    return ToolDefinition(
        name="edit_file",
        description="Edit an existing file by replacing specific content",
        parameters=[
            ToolParameter(name="path", type="string", description="Path of the file to edit"),
            ToolParameter(name="old_content", type="string", description="Exact text to replace"),
            ToolParameter(name="new_content", type="string", description="Replacement text"),
        ],
        handler=edit_file,
    )


def create_make_dir_tool() -> ToolDefinition:
    return ToolDefinition(
        name="make_dir",
        description="Create a directory (and parent directories if needed)",
        parameters=[
            ToolParameter(name="path", type="string", description="Directory to create"),
            ToolParameter(
                name="recursive",
                type="boolean",
                description="Create missing parents and accept an existing directory",
                required=False,
                default=True,
            ),
        ],
        handler=make_dir,
    )


def create_list_files_tool() -> ToolDefinition:
    return ToolDefinition(
        name="list_files",
        description="List files in a directory",
        parameters=[
            ToolParameter(
                name="path",
                type="string",
                description="Directory to list",
                required=False,
                default=".",
            )
        ],
        handler=list_files,
    )
