from typing import Dict, Any
import json

import jsonschema

from agentcore.domain.models.tooling import ToolDefinition
from agentcore.exceptions import ToolInputValidationError


class ToolParameterValidator:
    """Parses and validates tool arguments against the tool's JSON schema"""

    @staticmethod
    def parse_arguments(tool_name: str, arguments_json: str) -> Dict[str, Any]:
        if not arguments_json or not arguments_json.strip():
            return {}
        try:
            arguments = json.loads(arguments_json)
        except json.JSONDecodeError as e:
            raise ToolInputValidationError(
                f"Arguments for '{tool_name}' are not valid JSON: {e.msg}",
                tool_name=tool_name,
                invalid_input=arguments_json
            ) from e

        if not isinstance(arguments, dict):
            raise ToolInputValidationError(
                f"Arguments for '{tool_name}' must be a JSON object",
                tool_name=tool_name,
                invalid_input=arguments_json
            )
        return arguments

    @staticmethod
    def validate_tool_call(tool: ToolDefinition, arguments: Dict[str, Any]):
        schema = tool.parameters_schema
        if not schema:
            return

        try:
            jsonschema.validate(arguments, schema)
        except jsonschema.ValidationError as e:
            raise ToolInputValidationError(
                f"Schema validation failed for '{tool.name}': {e.message}",
                tool_name=tool.name,
                invalid_input=arguments
            ) from e
