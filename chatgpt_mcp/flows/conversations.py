"""会话切换与会话列表。

两者都是“尽力而为”的操作：
- ConversationSelector 找不到会话时静默继续使用当前会话。
- ConversationLister 读取失败时返回单元素哨兵列表，而不是抛异常。
"""

import time
from typing import Callable, List

from chatgpt_mcp.automation.base import ChatSurface
from chatgpt_mcp.domain.exceptions import AutomationError
from chatgpt_mcp.infrastructure.logging.logger import logger


UNABLE_TO_RETRIEVE = "Unable to retrieve conversations"


class ConversationSelector:
    def __init__(
        self,
        surface: ChatSurface,
        settle_ms: int = 1000,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._surface = surface
        self._settle_ms = settle_ms
        self._sleep = sleep

    def select(self, conversation_ref: str) -> bool:
        """点击标签等于 conversation_ref 的侧边栏按钮，失败返回 False。"""

        try:
            self._surface.click_conversation(conversation_ref)
        except AutomationError as exc:
            # TODO: confirm with product whether a missing conversation should fail the ask instead
            logger.warning(
                "Conversation not found, continuing with current conversation",
                extra={"extra": {"conversation_id": conversation_ref, "error": exc.message}},
            )
            return False
        self._sleep(self._settle_ms / 1000.0)
        return True


class ConversationLister:
    def __init__(self, surface: ChatSurface, new_chat_label: str = "New chat"):
        self._surface = surface
        self._new_chat_label = new_chat_label

    def list(self) -> List[str]:
        try:
            labels = self._surface.list_conversation_labels()
        except AutomationError as exc:
            logger.error(
                f"Error getting ChatGPT conversations: {exc.message}",
                extra={"extra": {"code": exc.code}},
            )
            return [UNABLE_TO_RETRIEVE]
        return [
            label
            for label in labels
            if label and label.strip() and label != self._new_chat_label
        ]
