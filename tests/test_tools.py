"""Tests for the tool registry, executor and built-in tools."""

import pytest

from painika.models.tools import ToolParameter, ToolState
from painika.tools import ToolDefinition, ToolRegistry, create_default_registry


async def _echo(params):
    return {"echo": params}


async def _explode(params):
    raise RuntimeError("disk on fire")


def echo_tool(name: str = "echo", description: str = "Echo parameters back") -> ToolDefinition:
    return ToolDefinition(
        name=name,
        description=description,
        parameters=[
            ToolParameter(name="text", type="string", description="Text to echo"),
            ToolParameter(name="count", type="number", required=False, default=1),
            ToolParameter(name="loud", type="boolean", required=False),
            ToolParameter(name="extra", type="object", required=False),
        ],
        handler=_echo,
    )


class TestToolRegistry:
    """Tests for registration and introspection."""

    def test_register_and_list(self):
        """Test tool names are listed in registration order."""
        registry = ToolRegistry([echo_tool("a"), echo_tool("b")])
        assert registry.get_tool_names() == ["a", "b"]
        assert registry.has_tool("a")
        assert not registry.has_tool("c")

    def test_last_registration_wins(self):
        """Test that re-registering a name replaces the tool without error."""
        registry = ToolRegistry()
        registry.register_tool(echo_tool(description="first"))
        registry.register_tool(echo_tool(description="second"))

        assert registry.get_tool_names() == ["echo"]
        assert registry.describe()[0]["function"]["description"] == "second"

    def test_describe_uses_declared_parameters(self):
        """Test the descriptor built from the declared parameter list."""
        descriptor = ToolRegistry([echo_tool()]).describe()[0]

        assert descriptor["type"] == "function"
        assert descriptor["function"]["name"] == "echo"
        parameters = descriptor["function"]["parameters"]
        assert parameters["type"] == "object"
        assert parameters["required"] == ["text"]
        assert parameters["properties"]["text"] == {"type": "string", "description": "Text to echo"}
        assert parameters["properties"]["count"] == {"type": "number", "default": 1}
        assert parameters["properties"]["loud"] == {"type": "boolean"}
        assert parameters["properties"]["extra"] == {"type": "object"}

    def test_default_registry_contents(self):
        """Test the built-in tool set."""
        names = create_default_registry().get_tool_names()
        assert set(names) == {"bash", "read_file", "write_file", "edit_file", "list_files", "make_dir"}


class TestToolExecution:
    """Tests for the execution lifecycle."""

    @pytest.mark.asyncio
    async def test_successful_execution(self):
        """Test completed state, validated output and timestamps."""
        registry = ToolRegistry([echo_tool()])

        execution = await registry.execute("echo", {"text": "hi", "ignored": True})

        assert execution.state == ToolState.COMPLETED
        assert execution.error is None
        assert execution.output == {"echo": {"text": "hi", "count": 1, "loud": None, "extra": None}}
        assert execution.input == {"text": "hi", "ignored": True}
        assert execution.end_time is not None
        assert execution.end_time >= execution.start_time
        assert registry.get_execution(execution.id) is execution

    @pytest.mark.asyncio
    async def test_unknown_tool_is_an_error_result(self):
        """Test that an unregistered tool never raises."""
        registry = ToolRegistry()

        execution = await registry.execute("nonexistent", {})

        assert execution.state == ToolState.ERROR
        assert execution.error
        assert "nonexistent" in execution.error
        assert execution.end_time is not None

    @pytest.mark.asyncio
    async def test_validation_failure_is_an_error_result(self):
        """Test that missing or mistyped parameters are reported, not raised."""
        registry = ToolRegistry([echo_tool()])

        missing = await registry.execute("echo", {})
        mistyped = await registry.execute("echo", {"text": 5})
        not_a_mapping = await registry.execute("echo", ["text"])

        for execution in (missing, mistyped, not_a_mapping):
            assert execution.state == ToolState.ERROR
            assert "Invalid parameters for echo" in execution.error
            assert execution.end_time is not None

    @pytest.mark.asyncio
    async def test_boolean_is_not_a_number(self):
        """Test strict typing of number parameters."""
        registry = ToolRegistry([echo_tool()])

        execution = await registry.execute("echo", {"text": "hi", "count": True})

        assert execution.state == ToolState.ERROR

    @pytest.mark.asyncio
    async def test_runtime_failure_is_an_error_result(self):
        """Test that exceptions from the tool are captured as strings."""
        tool = ToolDefinition(name="explode", description="Always fails", parameters=[], handler=_explode)
        registry = ToolRegistry([tool])

        execution = await registry.execute("explode", {})

        assert execution.state == ToolState.ERROR
        assert execution.error == "disk on fire"
        assert execution.output is None

    @pytest.mark.asyncio
    async def test_execution_log_keeps_every_execution(self):
        """Test that earlier executions, failed ones included, stay retrievable."""
        registry = ToolRegistry([echo_tool()])

        executions = [await registry.execute("echo", {"text": str(i)}) for i in range(5)]
        executions.append(await registry.execute("missing", {}))

        for execution in executions:
            assert registry.get_execution(execution.id) is execution
        assert registry.get_execution("unknown-id") is None

    @pytest.mark.asyncio
    async def test_terminal_state_is_set_once(self):
        """Test that a finished execution cannot change state."""
        execution = await ToolRegistry([echo_tool()]).execute("echo", {"text": "hi"})

        with pytest.raises(RuntimeError, match="already finished"):
            execution.fail("late failure")
        assert execution.state == ToolState.COMPLETED


class TestFilesystemTools:
    """Tests for the built-in filesystem tools."""

    @pytest.fixture
    def registry(self):
        return create_default_registry()

    @pytest.mark.asyncio
    async def test_write_then_read(self, registry, tmp_path):
        """Test writing a file (creating parents) and reading it back."""
        path = tmp_path / "nested" / "hello.txt"

        written = await registry.execute("write_file", {"path": str(path), "content": "hello"})
        read = await registry.execute("read_file", {"path": str(path)})

        assert written.state == ToolState.COMPLETED
        assert written.output == {"path": str(path), "size": 5}
        assert read.output == {"content": "hello", "size": 5}

    @pytest.mark.asyncio
    async def test_read_missing_file(self, registry, tmp_path):
        """Test the not-found error."""
        execution = await registry.execute("read_file", {"path": str(tmp_path / "missing.txt")})

        assert execution.state == ToolState.ERROR
        assert "File not found" in execution.error

    @pytest.mark.asyncio
    async def test_edit_file(self, registry, tmp_path):
        """Test replacing the first occurrence of existing content."""
        path = tmp_path / "code.py"
        path.write_text("x = 1\nx = 1\n")

        execution = await registry.execute(
            "edit_file", {"path": str(path), "old_content": "x = 1", "new_content": "x = 2"}
        )

        assert execution.state == ToolState.COMPLETED
        assert path.read_text() == "x = 2\nx = 1\n"

    @pytest.mark.asyncio
    async def test_edit_file_missing_content(self, registry, tmp_path):
        """Test the error when the content to replace is absent."""
        path = tmp_path / "code.py"
        path.write_text("x = 1\n")

        execution = await registry.execute("edit_file", {"path": str(path), "old_content": "y", "new_content": "z"})

        assert execution.state == ToolState.ERROR
        assert "Content not found" in execution.error

    @pytest.mark.asyncio
    async def test_make_dir_recursive_by_default(self, registry, tmp_path):
        """Test nested directory creation and the created flag."""
        path = tmp_path / "a" / "b"

        first = await registry.execute("make_dir", {"path": str(path)})
        second = await registry.execute("make_dir", {"path": str(path)})

        assert path.is_dir()
        assert first.output == {"path": str(path), "created": True}
        assert second.output == {"path": str(path), "created": False}

    @pytest.mark.asyncio
    async def test_make_dir_non_recursive_fails_without_parent(self, registry, tmp_path):
        """Test that recursive=false refuses to create parents."""
        execution = await registry.execute("make_dir", {"path": str(tmp_path / "a" / "b"), "recursive": False})

        assert execution.state == ToolState.ERROR
        assert "Failed to create directory" in execution.error

    @pytest.mark.asyncio
    async def test_list_files(self, registry, tmp_path):
        """Test one line per entry, directories marked with a slash."""
        (tmp_path / "file.txt").write_text("data")
        (tmp_path / "sub").mkdir()

        execution = await registry.execute("list_files", {"path": str(tmp_path)})

        assert execution.state == ToolState.COMPLETED
        lines = execution.output["files"]
        assert len(lines) == 2
        assert lines[0].endswith(" file.txt")
        assert lines[1].endswith(" sub/")
        assert lines[1].startswith("d")

    @pytest.mark.asyncio
    async def test_list_files_missing_directory(self, registry, tmp_path):
        execution = await registry.execute("list_files", {"path": str(tmp_path / "nope")})

        assert execution.state == ToolState.ERROR


class TestBashTool:
    """Tests for the shell tool."""

    @pytest.mark.asyncio
    async def test_captures_output_and_exit_code(self):
        """Test stdout, stderr and the exit code of a command."""
        registry = create_default_registry()

        execution = await registry.execute("bash", {"command": "echo hello; echo oops >&2; exit 3"})

        assert execution.state == ToolState.COMPLETED
        assert execution.output == {"output": "hello", "error": "oops", "exit_code": 3}

    @pytest.mark.asyncio
    async def test_timeout_is_an_error(self):
        """Test that a command exceeding its timeout is killed and reported."""
        registry = create_default_registry()

        execution = await registry.execute("bash", {"command": "sleep 5", "timeout": 0.2})

        assert execution.state == ToolState.ERROR
        assert "timed out" in execution.error
