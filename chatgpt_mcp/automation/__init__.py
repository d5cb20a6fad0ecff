"""桌面应用自动化层。

该包下的模块负责：
- 定义自动化能力协议 (base)。
- 维护目标应用的元素定位配置 (registry)。
- 提供 macOS AppleScript 的具体实现 (applescript)。
"""

import dataclasses
from typing import Optional

from chatgpt_mcp.config.settings import settings
from chatgpt_mcp.automation.base import AutomationBackend, ChatSurface, Clipboard, ClipboardSnapshot, TargetApp
from chatgpt_mcp.automation.applescript import AppleScriptClipboard, MacApp, MacChatWindow
from chatgpt_mcp.automation.registry import get_target_config


def create_backend(name: str = "chatgpt", app_name: Optional[str] = None) -> AutomationBackend:
    """根据目标名称创建 AppleScript 后端，app_name 默认取配置。"""

    config = get_target_config(name)
    override = app_name or settings.app_name
    if override and override != config.app_name:
        config = dataclasses.replace(config, app_name=override, process_name=override)
    return AutomationBackend(
        app=MacApp(settings, config),
        surface=MacChatWindow(settings, config),
        clipboard=AppleScriptClipboard(settings),
    )


__all__ = ["AutomationBackend", "ChatSurface", "Clipboard", "ClipboardSnapshot", "TargetApp", "create_backend"]
