"""对外 API 服务模块。

提供进程级单例（Orchestrator / ToolExecutor）以及简化的函数接口，
MCP server 与其他调用方都通过这里拿到同一个限流器状态。
"""

import threading
from typing import List, Optional

from chatgpt_mcp.automation import create_backend
from chatgpt_mcp.config.settings import settings
from chatgpt_mcp.flows.orchestrator import Orchestrator, build_orchestrator
from chatgpt_mcp.tools.executor import ToolExecutor, default_tools


_orchestrator: Optional[Orchestrator] = None
_executor: Optional[ToolExecutor] = None
_init_lock = threading.Lock()


def get_default_orchestrator() -> Orchestrator:
    """获取默认的 Orchestrator 实例（单例）。"""
    global _orchestrator
    with _init_lock:
        if _orchestrator is None:
            _orchestrator = build_orchestrator(create_backend(), settings)
    return _orchestrator


def get_default_executor() -> ToolExecutor:
    """获取默认的 ToolExecutor 实例（单例）。"""
    global _executor
    orchestrator = get_default_orchestrator()
    with _init_lock:
        if _executor is None:
            _executor = ToolExecutor(default_tools(orchestrator))
    return _executor


def ask(prompt: str, conversation_id: Optional[str] = None, delay_ms: Optional[int] = None) -> str:
    """向 ChatGPT 提问并返回回复文本。

    Args:
        prompt: 要发送的内容（非空）
        conversation_id: 侧边栏中的会话标题（可选，找不到时继续使用当前会话）
        delay_ms: 覆盖默认限流间隔（毫秒，可选）

    Raises:
        各种 domain.exceptions 中定义的异常
    """
    return get_default_orchestrator().ask(prompt, conversation_id, delay_ms)


def list_conversations() -> List[str]:
    """列出侧边栏中的会话标题（不含 “New chat”）。"""
    return get_default_orchestrator().list_conversations()
