"""把 prompt 送进目标应用的输入框。

不使用逐字符 keystroke（长文本和 unicode 会丢字、截断），而是借用系统剪贴板
整体粘贴。剪贴板是全局共享资源，因此：

1. 粘贴前先快照原内容；
2. 无论聚焦、粘贴、提交是否成功，都在 finally 中恢复快照；
3. 快照到恢复这一段持锁，避免并发发送互相覆盖剪贴板。
"""

import threading
import time
from typing import Any, Callable, Optional

from chatgpt_mcp.automation.base import ChatSurface, Clipboard, TargetApp
from chatgpt_mcp.domain.exceptions import AutomationError, InputDeliveryError, UnreachableTargetError
from chatgpt_mcp.flows.conversations import ConversationSelector
from chatgpt_mcp.infrastructure.logging.logger import logger


def paste_ingest_seconds(text: str) -> float:
    """粘贴后等待应用接收内容的时长：max(1s, 每 1000 字符 1s)。"""

    return max(1.0, len(text) / 1000.0)


class InputTransport:
    def __init__(
        self,
        app: TargetApp,
        surface: ChatSurface,
        clipboard: Clipboard,
        selector: Optional[ConversationSelector] = None,
        activate_settle_ms: int = 1000,
        focus_settle_ms: int = 500,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._app = app
        self._surface = surface
        self._clipboard = clipboard
        self._selector = selector or ConversationSelector(surface, sleep=sleep)
        self._activate_settle_ms = activate_settle_ms
        self._focus_settle_ms = focus_settle_ms
        self._sleep = sleep
        self._lock = threading.Lock()

    def send(self, text: str, conversation_ref: Optional[str] = None) -> None:
        try:
            self._app.activate()
        except AutomationError as exc:
            raise UnreachableTargetError(
                code="TARGET_UNREACHABLE",
                message=f"Could not bring {self._app.name} to the front: {exc.message}",
            )
        self._sleep(self._activate_settle_ms / 1000.0)

        if conversation_ref:
            self._selector.select(conversation_ref)

        with self._lock:
            try:
                snapshot = self._clipboard.read()
            except AutomationError as exc:
                raise InputDeliveryError(
                    code="INPUT_DELIVERY_FAILED",
                    message=f"snapshot step failed: {exc.message}",
                    step="snapshot",
                )
            try:
                self._deliver(text)
            finally:
                self._restore(snapshot)

    def _deliver(self, text: str) -> None:
        step = "clipboard"
        try:
            self._clipboard.write(text)
            step = "focus"
            self._surface.focus_input()
            self._sleep(self._focus_settle_ms / 1000.0)
            step = "paste"
            self._surface.paste()
            self._sleep(paste_ingest_seconds(text))
            step = "submit"
            self._surface.submit()
        except AutomationError as exc:
            raise InputDeliveryError(
                code="INPUT_DELIVERY_FAILED",
                message=f"{step} step failed: {exc.message}",
                step=step,
            )
        logger.info("Prompt delivered", extra={"extra": {"prompt_length": len(text)}})

    def _restore(self, snapshot: Any) -> None:
        try:
            self._clipboard.write(snapshot)
        except AutomationError as exc:
            logger.warning(
                "Failed to restore clipboard content",
                extra={"extra": {"error": exc.message}},
            )
