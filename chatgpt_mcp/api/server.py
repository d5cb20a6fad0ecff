"""MCP stdio 服务入口。

暴露单个 `chatgpt` 工具。工具调用在线程池中执行（核心流程是阻塞的
time.sleep / osascript），由 Orchestrator 内部的锁保证一次只处理一个请求。

stdout 专用于 MCP 协议，所有日志只写 stderr 与日志文件。
"""

from typing import Any, Dict, List, Optional
from uuid import uuid4

import anyio
import anyio.to_thread
import mcp.server.stdio
import mcp.types as types
from mcp.server.lowlevel import Server

from chatgpt_mcp.api.service import get_default_executor
from chatgpt_mcp.infrastructure.logging.logger import logger
from chatgpt_mcp.tools.definitions import ToolCall, ToolDef, ToolResult, default_tool_defs
from chatgpt_mcp.tools.executor import ToolExecutor


SERVER_NAME = "ChatGPT MCP Tool"
SERVER_VERSION = "1.0.0"


class ToolCallFailed(Exception):
    """low-level Server 会把处理函数抛出的异常转换为 isError=True 的结果，文本即 str(exc)。"""


def to_mcp_tool(tool: ToolDef) -> types.Tool:
    return types.Tool(name=tool.name, description=tool.description, inputSchema=tool.input_schema())


async def run_tool_call(executor: ToolExecutor, name: str, arguments: Optional[Dict[str, Any]]) -> ToolResult:
    call = ToolCall(id=f"call-{uuid4().hex}", name=name, arguments=arguments)
    return await anyio.to_thread.run_sync(executor.execute, call)


def build_server(executor: Optional[ToolExecutor] = None) -> Server:
    server = Server(SERVER_NAME, version=SERVER_VERSION)
    tool_defs = default_tool_defs()

    def _executor() -> ToolExecutor:
        return executor if executor is not None else get_default_executor()

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return [to_mcp_tool(t) for t in tool_defs]

    # 参数校验交给 parse_request，保证错误文本为 "Error: ..."
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
        result = await run_tool_call(_executor(), name, arguments)
        if result.is_error:
            raise ToolCallFailed(result.content)
        return [types.TextContent(type="text", text=result.content)]

    return server


async def serve(server: Optional[Server] = None) -> None:
    server = server or build_server()
    async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
        logger.info("ChatGPT MCP Server running on stdio")
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main() -> None:
    anyio.run(serve)


if __name__ == "__main__":
    main()
