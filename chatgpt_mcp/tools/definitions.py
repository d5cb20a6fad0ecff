"""工具数据结构定义。

这些 dataclass 描述了“工具调用”的 schema，既用于：
- 通过 MCP list_tools 暴露可用工具（ToolDef / ToolParam -> JSON Schema）。
- 在 ToolExecutor 中保存和执行客户端发起的工具调用（ToolCall / ToolResult）。
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class ToolParam:
    """单个工具参数的定义。"""

    name: str
    description: str
    required: bool
    schema: Dict[str, Any]


@dataclass
class ToolDef:
    """一个可供 MCP 客户端调用的工具定义。"""

    name: str
    description: str
    params: Dict[str, ToolParam]

    def input_schema(self) -> Dict[str, Any]:
        properties: Dict[str, Any] = {}
        required: List[str] = []
        for param in self.params.values():
            properties[param.name] = {**param.schema, "description": param.description}
            if param.required:
                required.append(param.name)
        return {"type": "object", "properties": properties, "required": required}


@dataclass
class ToolCall:
    """客户端发起的一次工具调用请求。"""

    id: str
    name: str
    arguments: Optional[Dict[str, Any]]


@dataclass
class ToolResult:
    """工具执行结果的封装（文本形式）。"""

    call_id: str
    content: str
    is_error: bool = False


CHATGPT_TOOL = ToolDef(
    name="chatgpt",
    description="Interact with the ChatGPT desktop app on macOS",
    params={
        "operation": ToolParam(
            name="operation",
            description="Operation to perform: 'ask' or 'get_conversations'",
            required=True,
            schema={"type": "string", "enum": ["ask", "get_conversations"]},
        ),
        "prompt": ToolParam(
            name="prompt",
            description="The prompt to send to ChatGPT (required for ask operation)",
            required=False,
            schema={"type": "string"},
        ),
        "conversation_id": ToolParam(
            name="conversation_id",
            description="Optional conversation ID to continue a specific conversation",
            required=False,
            schema={"type": "string"},
        ),
        "delay_ms": ToolParam(
            name="delay_ms",
            description=(
                "Optional delay in milliseconds before sending the request "
                "(defaults to 120000 - 2 minutes)"
            ),
            required=False,
            schema={"type": "integer", "minimum": 0},
        ),
    },
)


def default_tool_defs() -> List[ToolDef]:
    return [CHATGPT_TOOL]
