"""Base types and definitions for tools."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, StrictBool, StrictFloat, StrictInt, StrictStr, ValidationError, create_model

from painika.exceptions import ToolValidationError
from painika.models.tools import ParameterType, ToolParameter

ToolHandler = Callable[[dict[str, Any]], Awaitable[Any]]

_PARAMETER_TYPES: dict[ParameterType, Any] = {
    "string": StrictStr,
    "number": StrictInt | StrictFloat,
    "boolean": StrictBool,
    "object": dict[str, Any],
}


@dataclass
class ToolDefinition:
    """Definition of a tool available to the assistant.

    The parameter list is declared by hand; both the schema handed to the
    model and the validation applied before execution derive from it.
    """

    name: str
    description: str
    parameters: list[ToolParameter]
    handler: ToolHandler
    _input_model: type[BaseModel] | None = field(default=None, init=False, repr=False, compare=False)

    def get_json_schema(self) -> dict[str, Any]:
        """Get JSON schema for this tool's input."""
        return {
            "type": "object",
            "properties": {param.name: param.json_schema() for param in self.parameters},
            "required": [param.name for param in self.parameters if param.required],
        }

    def describe(self) -> dict[str, Any]:
        """Function descriptor in the chat completion ``tools`` format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.get_json_schema(),
            },
        }

    def parse_input(self, raw_input: Any) -> dict[str, Any]:
        """Validate tool input and apply declared defaults.

        Raises:
            ToolValidationError: If the input does not match the declared parameters
        """
        try:
            validated = self._get_input_model().model_validate(raw_input)
        except ValidationError as e:
            raise ToolValidationError(f"Invalid parameters for {self.name}: {e}") from e
        return validated.model_dump()

    def _get_input_model(self) -> type[BaseModel]:
        if self._input_model is None:
            fields: dict[str, Any] = {}
            for param in self.parameters:
                annotation = _PARAMETER_TYPES[param.type]
                if param.required:
                    fields[param.name] = (annotation, ...)
                elif param.default is None:
                    fields[param.name] = (annotation | None, None)
                else:
                    fields[param.name] = (annotation, param.default)

            self._input_model = create_model(
                f"{self.name}_input",
                __config__=ConfigDict(extra="ignore"),
                **fields,
            )
        return self._input_model
