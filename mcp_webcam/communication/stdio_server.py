"""
mcp-webcam - Stdio Server
Newline-delimited JSON-RPC 2.0 over stdin/stdout.

Requests are handled one at a time, each to completion before the next
line is read. stdout carries protocol messages only; logs go to stderr.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
import threading
from typing import Any, Awaitable, Callable, Protocol

from mcp_webcam.constants import PROTOCOL_VERSION, SERVER_NAME, SERVER_VERSION
from mcp_webcam.messages import (
    ErrorCode,
    Request,
    Response,
    ToolInvocation,
    create_error_response,
    create_result_response,
)
from mcp_webcam.tools import ToolRegistry

from .resources import ResourceProvider, UnknownResource

logger = logging.getLogger(__name__)

# Longest accepted request line
STREAM_LIMIT = 16 * 1024 * 1024

MethodHandler = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]


class LineWriter(Protocol):
    def write(self, data: bytes) -> None: ...

    async def drain(self) -> None: ...


class InvalidParams(ValueError):
    """Raised by a method handler when its params are malformed."""

    pass


def _valid_id(value: Any) -> bool:
    return value is None or (isinstance(value, (str, int)) and not isinstance(value, bool))


class StdoutWriter:
    """Writes protocol lines to the process stdout."""

    def __init__(self, stream: Any = None) -> None:
        self._stream = stream if stream is not None else sys.stdout.buffer

    def write(self, data: bytes) -> None:
        self._stream.write(data)

    async def drain(self) -> None:
        self._stream.flush()


async def open_stdin_reader(limit: int = STREAM_LIMIT) -> asyncio.StreamReader:
    """Create a StreamReader fed from the process stdin."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=limit)

    if sys.platform == "win32":
        # Proactor pipes cannot wrap a console stdin; pump it from a thread
        def pump() -> None:
            for line in iter(sys.stdin.buffer.readline, b""):
                loop.call_soon_threadsafe(reader.feed_data, line)
            loop.call_soon_threadsafe(reader.feed_eof)

        threading.Thread(target=pump, name="stdin_reader", daemon=True).start()
    else:
        protocol = asyncio.StreamReaderProtocol(reader)
        await loop.connect_read_pipe(lambda: protocol, sys.stdin)

    return reader


class StdioServer:
    """
    JSON-RPC server exposing the tool registry and the resources.

    Protocol faults (bad JSON, unknown method, bad params) become error
    responses. Tool failures are ordinary results with isError set.
    """

    def __init__(self, registry: ToolRegistry, resources: ResourceProvider) -> None:
        """
        Initialize the server.

        Args:
            registry: Tool registry serving tools/list and tools/call
            resources: Provider serving resources/list and resources/read
        """
        self._registry = registry
        self._resources = resources
        self._initialized = False
        self._requests_handled = 0

        self._methods: dict[str, MethodHandler] = {
            "initialize": self._handle_initialize,
            "ping": self._handle_ping,
            "tools/list": self._handle_list_tools,
            "tools/call": self._handle_call_tool,
            "resources/list": self._handle_list_resources,
            "resources/read": self._handle_read_resource,
        }

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def serve(self, reader: asyncio.StreamReader, writer: LineWriter) -> None:
        """
        Handle requests until the input stream ends.

        Args:
            reader: Source of request lines
            writer: Sink for response lines
        """
        logger.info("MCP webcam server running on stdio")

        while True:
            try:
                line = await reader.readline()
            except ValueError as e:
                # Line longer than the stream limit
                logger.warning(f"Discarding oversized request: {e}")
                await self._send(writer, create_error_response(None, ErrorCode.PARSE_ERROR, "Request too large"))
                continue

            if not line:
                logger.info("Input stream closed")
                break

            line = line.strip()
            if not line:
                continue

            response = await self.handle_line(line)
            if response is not None:
                await self._send(writer, response)

    async def _send(self, writer: LineWriter, response: Response) -> None:
        writer.write(response.serialize())
        await writer.drain()

    async def handle_line(self, line: bytes) -> Response | None:
        """Decode one request line and handle it."""
        try:
            data = json.loads(line)
        except ValueError as e:
            logger.warning(f"Unparseable request: {e}")
            return create_error_response(None, ErrorCode.PARSE_ERROR, "Parse error")

        request_id = data.get("id") if isinstance(data, dict) else None
        if not _valid_id(request_id):
            return create_error_response(None, ErrorCode.INVALID_REQUEST, "Invalid request id")

        try:
            request = Request.from_dict(data)
        except ValueError as e:
            return create_error_response(request_id, ErrorCode.INVALID_REQUEST, f"Invalid request: {e}")

        return await self.handle_request(request)

    async def handle_request(self, request: Request) -> Response | None:
        """
        Handle one request.

        Returns:
            The response, or None for notifications
        """
        if request.is_notification:
            self._handle_notification(request)
            return None

        handler = self._methods.get(request.method)
        if handler is None:
            logger.debug(f"Unknown method: {request.method}")
            return create_error_response(
                request.id, ErrorCode.METHOD_NOT_FOUND, f"Method not found: {request.method}"
            )

        try:
            result = await handler(request.params)
        except (InvalidParams, UnknownResource) as e:
            return create_error_response(request.id, ErrorCode.INVALID_PARAMS, str(e))
        except Exception as e:
            logger.exception(f"Error handling {request.method}")
            return create_error_response(request.id, ErrorCode.INTERNAL_ERROR, f"Internal error: {e}")

        self._requests_handled += 1
        return create_result_response(request.id, result)

    def _handle_notification(self, request: Request) -> None:
        if request.method == "notifications/initialized":
            self._initialized = True
            logger.info("Client initialized")
        else:
            logger.debug(f"Ignoring notification: {request.method}")

    # -------------------------------------------------------------------------
    # Methods
    # -------------------------------------------------------------------------

    async def _handle_initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        requested = params.get("protocolVersion")
        client = params.get("clientInfo") or {}
        logger.info(f"Initialize from {client.get('name', 'unknown client')} (protocol {requested})")

        return {
            "protocolVersion": requested if isinstance(requested, str) and requested else PROTOCOL_VERSION,
            "capabilities": {"tools": {}, "resources": {}},
            "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
        }

    async def _handle_ping(self, params: dict[str, Any]) -> dict[str, Any]:
        return {}

    async def _handle_list_tools(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"tools": [definition.to_dict() for definition in self._registry.list_tools()]}

    async def _handle_call_tool(self, params: dict[str, Any]) -> dict[str, Any]:
        if not isinstance(params.get("name"), str):
            raise InvalidParams("Missing tool name")

        invocation = ToolInvocation.from_params(params)
        logger.debug(f"Tool call: {invocation.name}")
        result = await self._registry.invoke(invocation.name, invocation.arguments)
        return result.to_dict()

    async def _handle_list_resources(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"resources": [resource.to_dict() for resource in self._resources.list_resources()]}

    async def _handle_read_resource(self, params: dict[str, Any]) -> dict[str, Any]:
        uri = params.get("uri")
        if not isinstance(uri, str):
            raise InvalidParams("Missing resource uri")
        return await self._resources.read_contents(uri)

    def get_status(self) -> dict[str, Any]:
        """Get server status."""
        return {
            "initialized": self._initialized,
            "requests_handled": self._requests_handled,
            "tools": len(self._registry),
        }
