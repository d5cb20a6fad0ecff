from typing import Any, Callable, Dict, List, Optional

from chatgpt_mcp.domain.exceptions import BusinessError, ValidationError
from chatgpt_mcp.domain.models import OPERATIONS, Request
from chatgpt_mcp.infrastructure.logging.logger import logger
from .definitions import ToolCall, ToolResult


ToolFunc = Callable[[Dict[str, Any]], str]

NO_RESPONSE = "No response received from ChatGPT."
NO_CONVERSATIONS = "No conversations found in ChatGPT."


class ToolExecutor:
    """按名称分发工具调用，并把所有异常转换为 is_error 的文本结果。"""

    def __init__(self, tools: Dict[str, ToolFunc]):
        self._tools = tools

    def execute(self, call: ToolCall) -> ToolResult:
        func = self._tools.get(call.name)
        if not func:
            return ToolResult(call_id=call.id, content=f"Unknown tool: {call.name}", is_error=True)
        try:
            # SDK 会把缺省的 arguments 转成 {}
            if not call.arguments:
                raise ValidationError(code="INVALID_ARGUMENT", message="No arguments provided")
            content = func(call.arguments)
        except BusinessError as exc:
            logger.error(
                f"Tool call failed: {exc.message}",
                extra={"extra": {"tool": call.name, "call_id": call.id, "code": exc.code}},
            )
            return ToolResult(call_id=call.id, content=f"Error: {exc.message}", is_error=True)
        except Exception as exc:  # noqa: BLE001 - 任何异常都要转换为工具错误返回给客户端
            logger.exception("Unexpected tool failure", extra={"extra": {"tool": call.name, "call_id": call.id}})
            return ToolResult(call_id=call.id, content=f"Error: {exc}", is_error=True)
        return ToolResult(call_id=call.id, content=content)


def parse_request(args: Any) -> Request:
    """校验原始工具参数并构造 Request。"""

    invalid = ValidationError(code="INVALID_ARGUMENT", message="Invalid arguments for ChatGPT tool")
    if not isinstance(args, dict):
        raise invalid
    operation = args.get("operation")
    if operation not in OPERATIONS:
        raise invalid

    prompt = args.get("prompt")
    conversation_id = args.get("conversation_id")
    delay_ms = args.get("delay_ms")
    if prompt is not None and not isinstance(prompt, str):
        raise invalid
    if conversation_id is not None and not isinstance(conversation_id, str):
        raise invalid
    if delay_ms is not None:
        delay_ms = _coerce_delay(delay_ms)
        if delay_ms is None:
            raise invalid

    if operation == "ask" and (not prompt or not prompt.strip()):
        raise ValidationError(code="INVALID_ARGUMENT", message="Prompt is required for ask operation")

    return Request(
        operation=operation,
        prompt=prompt,
        conversation_id=conversation_id or None,
        delay_ms=delay_ms,
    )


def _coerce_delay(value: Any) -> Optional[int]:
    # bool 是 int 的子类，需要单独排除
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not value.is_integer():
        return None
    if value < 0:
        return None
    return int(value)


def format_ask_response(text: Optional[str]) -> str:
    return text or NO_RESPONSE


def format_conversations(conversations: List[str]) -> str:
    if not conversations:
        return NO_CONVERSATIONS
    return f"Found {len(conversations)} conversation(s):\n\n" + "\n".join(conversations)


def _make_chatgpt_tool(orchestrator) -> ToolFunc:
    def _run(args: Dict[str, Any]) -> str:
        req = parse_request(args)
        if req.operation == "ask":
            return format_ask_response(orchestrator.ask(req.prompt, req.conversation_id, req.delay_ms))
        return format_conversations(orchestrator.list_conversations())

    return _run


def default_tools(orchestrator) -> Dict[str, ToolFunc]:
    return {
        "chatgpt": _make_chatgpt_tool(orchestrator),
    }
