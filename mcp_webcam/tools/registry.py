"""
mcp-webcam - Tool Registry
Maps tool names to argument models and handlers, and turns every outcome into a ToolResult.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, ValidationError

from mcp_webcam.errors import InvalidArguments, UnknownTool, WebcamError
from mcp_webcam.messages import ToolDefinition, ToolResult, error_result
from mcp_webcam.video.base import format_number

from .schemas import input_schema

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[ToolResult]]


def describe_validation_error(error: ValidationError) -> list[str]:
    """
    Render each pydantic violation as "<field> <constraint>".

    Example: "brightness must be <= 100"
    """
    violations = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "arguments"
        ctx = item.get("ctx") or {}
        kind = item["type"]

        if kind in ("less_than_equal", "less_than"):
            op = "<=" if kind == "less_than_equal" else "<"
            violations.append(f"{field} must be {op} {format_number(ctx.get('le', ctx.get('lt')))}")
        elif kind in ("greater_than_equal", "greater_than"):
            op = ">=" if kind == "greater_than_equal" else ">"
            violations.append(f"{field} must be {op} {format_number(ctx.get('ge', ctx.get('gt')))}")
        elif kind == "literal_error":
            violations.append(f"{field} must be one of {ctx.get('expected')}")
        elif kind == "extra_forbidden":
            violations.append(f"{field} is not allowed")
        elif kind == "missing":
            violations.append(f"{field} is required")
        else:
            violations.append(f"{field}: {item['msg']}")
    return violations


@dataclass(frozen=True)
class ToolSpec:
    """A registered tool: its definition, argument model and handler."""

    definition: ToolDefinition
    arguments_model: type[BaseModel]
    handler: Handler

    @property
    def name(self) -> str:
        return self.definition.name


class ToolRegistry:
    """
    Name -> tool lookup with argument validation.

    The registry holds no per-call state; handlers own all side effects.

    Usage:
        registry = ToolRegistry()

        @registry.register("ping", "Check the server", NoArguments)
        async def ping(args):
            return text_result("pong")

        result = await registry.invoke("ping", {})
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolSpec] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def add(
        self,
        name: str,
        description: str,
        arguments_model: type[BaseModel],
        handler: Handler,
    ) -> ToolSpec:
        """
        Register a handler under a unique name.

        Raises:
            ValueError: If the name is already registered
        """
        if name in self._tools:
            raise ValueError(f"Tool already registered: {name}")

        spec = ToolSpec(
            definition=ToolDefinition(
                name=name,
                description=description,
                input_schema=input_schema(arguments_model),
            ),
            arguments_model=arguments_model,
            handler=handler,
        )
        self._tools[name] = spec
        logger.debug(f"Registered tool: {name}")
        return spec

    def register(
        self,
        name: str,
        description: str,
        arguments_model: type[BaseModel],
    ) -> Callable[[Handler], Handler]:
        """Decorator form of add()."""

        def decorator(handler: Handler) -> Handler:
            self.add(name, description, arguments_model, handler)
            return handler

        return decorator

    def list_tools(self) -> list[ToolDefinition]:
        """Tool definitions in registration order."""
        return [spec.definition for spec in self._tools.values()]

    def get(self, name: str) -> ToolSpec:
        """
        Raises:
            UnknownTool: If the name is not registered
        """
        spec = self._tools.get(name)
        if spec is None:
            raise UnknownTool(name)
        return spec

    def validate(self, name: str, arguments: dict[str, Any] | None) -> BaseModel:
        """
        Validate raw arguments and apply the declared defaults.

        Raises:
            UnknownTool: If the name is not registered
            InvalidArguments: If the arguments violate the tool's schema
        """
        spec = self.get(name)
        try:
            return spec.arguments_model.model_validate(arguments if arguments is not None else {})
        except ValidationError as e:
            raise InvalidArguments(describe_validation_error(e)) from e

    async def invoke(self, name: str, arguments: dict[str, Any] | None = None) -> ToolResult:
        """
        Run a tool. Never raises; every failure becomes an error-flagged result.

        Args:
            name: Tool name
            arguments: Raw, unvalidated arguments

        Returns:
            ToolResult from the handler, or an error result
        """
        try:
            validated = self.validate(name, arguments)
        except WebcamError as e:
            logger.warning(f"Rejected call to {name}: {e}")
            return error_result(str(e))

        handler = self._tools[name].handler
        try:
            return await handler(validated)
        except WebcamError as e:
            logger.warning(f"Tool {name} failed: {e}")
            return error_result(f"Error executing tool {name}: {e}")
        except Exception as e:
            logger.exception(f"Unexpected error in tool {name}")
            return error_result(f"Error executing tool {name}: {e}")
