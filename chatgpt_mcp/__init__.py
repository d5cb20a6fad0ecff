"""ChatGPT MCP 顶层包。

该包通过 AppleScript 驱动 macOS 上的 ChatGPT 桌面应用，并以 MCP 工具的形式
对外提供 ask / get_conversations 两个操作，
包括配置加载、领域模型、自动化后端、限流、剪贴板输入、回复完成检测等能力。
"""

from chatgpt_mcp.api.service import ask, list_conversations

__all__ = ["ask", "list_conversations"]
