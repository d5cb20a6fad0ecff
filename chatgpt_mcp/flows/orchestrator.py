"""ask / get_conversations 两个操作的编排。

ask:  可达性检查 -> 限流等待 -> 记录发送时间 -> 切换会话 + 粘贴发送 -> 等待回复稳定
list: 可达性检查 -> 读取侧边栏会话

两个操作都先经过同一个可达性检查，保证限流器与回复检测永远不会面对一个
尚未启动的应用。整个操作在同一把锁内执行，一次只处理一个请求。
"""

import threading
import time
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from chatgpt_mcp.automation.base import AutomationBackend, TargetApp
from chatgpt_mcp.domain.exceptions import AutomationError, InputDeliveryError, UnreachableTargetError, ValidationError
from chatgpt_mcp.flows.conversations import ConversationLister, ConversationSelector
from chatgpt_mcp.flows.rate_limiter import RateLimiter
from chatgpt_mcp.flows.transport import InputTransport
from chatgpt_mcp.flows.watcher import ResponseWatcher
from chatgpt_mcp.infrastructure.logging.logger import logger


class Orchestrator:
    def __init__(
        self,
        app: TargetApp,
        limiter: RateLimiter,
        transport: InputTransport,
        watcher: ResponseWatcher,
        lister: ConversationLister,
        launch_settle_ms: int = 2000,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._app = app
        self._limiter = limiter
        self._transport = transport
        self._watcher = watcher
        self._lister = lister
        self._launch_settle_ms = launch_settle_ms
        self._sleep = sleep
        self._lock = threading.Lock()

    def ensure_reachable(self) -> None:
        """确认目标应用在运行；未运行时尝试启动并等待其就绪。"""

        try:
            running = self._app.is_running()
        except AutomationError as exc:
            logger.error("ChatGPT access check failed", extra={"extra": {"error": exc.message}})
            raise UnreachableTargetError(
                code="TARGET_UNREACHABLE",
                message=(
                    f"Cannot access {self._app.name} app. Please make sure {self._app.name} "
                    f"is installed and properly configured. Error: {exc.message}"
                ),
            )
        if running:
            return

        logger.info(f"{self._app.name} app is not running, attempting to launch...")
        try:
            self._app.activate()
        except AutomationError as exc:
            logger.error(f"Error activating {self._app.name} app", extra={"extra": {"error": exc.message}})
            raise UnreachableTargetError(
                code="TARGET_UNREACHABLE",
                message=f"Could not activate {self._app.name} app. Please start it manually.",
            )
        self._sleep(self._launch_settle_ms / 1000.0)

    def ask(
        self,
        prompt: Optional[str],
        conversation_id: Optional[str] = None,
        delay_ms: Optional[int] = None,
    ) -> str:
        """发送 prompt 并返回回复文本（超时时可能是部分回复或超时提示）。

        Raises:
            ValidationError: prompt 为空或 delay_ms 为负。
            UnreachableTargetError: 应用无法访问或启动。
            InputDeliveryError: 输入框聚焦、粘贴或提交失败。
        """

        if not prompt or not prompt.strip():
            raise ValidationError(code="INVALID_ARGUMENT", message="Prompt is required for ask operation")
        if delay_ms is not None and delay_ms < 0:
            raise ValidationError(code="INVALID_ARGUMENT", message="delay_ms must be a non-negative integer")

        log_ctx: Dict[str, Any] = {
            "trace_id": f"ask-{uuid4().hex}",
            "conversation_id": conversation_id,
            "prompt_length": len(prompt),
        }
        with self._lock:
            self.ensure_reachable()
            self._limiter.wait_for_slot(delay_ms)
            self._limiter.mark_dispatched()
            start_time = time.time()
            logger.info("Sending prompt to ChatGPT", extra={"extra": log_ctx})
            try:
                self._transport.send(prompt, conversation_id)
            except InputDeliveryError as exc:
                logger.error("Error interacting with ChatGPT", extra={"extra": {**log_ctx, "error": exc.message}})
                raise InputDeliveryError(
                    code=exc.code,
                    message=f"Failed to get response from ChatGPT: {exc.message}",
                    **exc.extra,
                )
            result = self._watcher.await_completion()
            logger.info(
                "Ask finished",
                extra={"extra": {
                    **log_ctx,
                    "completed": result.completed,
                    "response_length": len(result.text),
                    "duration_ms": int((time.time() - start_time) * 1000),
                }},
            )
            return result.text

    def list_conversations(self) -> List[str]:
        with self._lock:
            self.ensure_reachable()
            return self._lister.list()


def build_orchestrator(backend: AutomationBackend, settings) -> Orchestrator:
    """根据配置把各组件装配成 Orchestrator。"""

    surface = backend.surface
    selector = ConversationSelector(surface, settle_ms=settings.selection_settle_ms)
    transport = InputTransport(
        app=backend.app,
        surface=surface,
        clipboard=backend.clipboard,
        selector=selector,
        activate_settle_ms=settings.activate_settle_ms,
        focus_settle_ms=settings.focus_settle_ms,
    )
    watcher = ResponseWatcher(
        surface,
        poll_interval_ms=settings.poll_interval_ms,
        required_stable_samples=settings.stable_samples,
        max_wait_ms=settings.max_wait_ms,
        grace_ms=settings.response_grace_ms,
    )
    return Orchestrator(
        app=backend.app,
        limiter=RateLimiter(default_interval_ms=settings.rate_limit_interval_ms),
        transport=transport,
        watcher=watcher,
        lister=ConversationLister(surface, new_chat_label=settings.new_chat_label),
        launch_settle_ms=settings.launch_settle_ms,
    )
