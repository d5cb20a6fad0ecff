"""回复完成检测。

目标应用没有“生成结束”事件，唯一可观测的进度信号是输出区域文本的长度。
ResponseWatcher 按固定间隔轮询长度，并用一个三态状态机判断是否完成：

    GROWING --(长度不变且 > 0)--> STABILIZING(n) --(n == required)--> DONE
       ^                               |
       +-------(长度变化或为 0)---------+

要求连续多次不变，是为了排除渲染过程中的短暂停顿；长度为 0 永远不算稳定，
避免在生成尚未开始时就误判完成。超时不是错误：返回最后一次观测到的非空
文本，若从未观测到内容则返回固定提示。
"""

import time
from typing import Callable, List, Optional

from chatgpt_mcp.automation.base import ChatSurface
from chatgpt_mcp.domain.exceptions import AutomationError
from chatgpt_mcp.domain.models import WatchResult, WatchSample, WatchState
from chatgpt_mcp.infrastructure.logging.logger import logger


TIMEOUT_MESSAGE = "ChatGPT took too long to respond. Please try again with a simpler question."


class ResponseWatcher:
    def __init__(
        self,
        surface: ChatSurface,
        poll_interval_ms: int = 3000,
        required_stable_samples: int = 3,
        max_wait_ms: int = 120000,
        grace_ms: int = 2000,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._surface = surface
        self.poll_interval_ms = poll_interval_ms
        self.required_stable_samples = required_stable_samples
        self.max_wait_ms = max_wait_ms
        self.grace_ms = grace_ms
        self._clock = clock
        self._sleep = sleep
        self.state = WatchState.GROWING

    def await_completion(
        self,
        max_wait_ms: Optional[int] = None,
        poll_interval_ms: Optional[int] = None,
        required_stable_samples: Optional[int] = None,
    ) -> WatchResult:
        max_wait = self.max_wait_ms if max_wait_ms is None else max_wait_ms
        poll = self.poll_interval_ms if poll_interval_ms is None else poll_interval_ms
        required = max(1, self.required_stable_samples if required_stable_samples is None else required_stable_samples)

        self.state = WatchState.GROWING
        if self.grace_ms > 0:
            self._sleep(self.grace_ms / 1000.0)

        start = self._clock()
        previous_length = 0
        stable_count = 0
        last_text = ""
        samples: List[WatchSample] = []

        while True:
            text = self._read()
            length = len(text)
            if length > 0 and length == previous_length:
                stable_count += 1
            else:
                stable_count = 0
            logger.debug(f"Previous length: {previous_length}, Current length: {length}")
            previous_length = length
            if length > 0:
                last_text = text

            if stable_count >= required:
                self.state = WatchState.DONE
            elif stable_count > 0:
                self.state = WatchState.STABILIZING
            else:
                self.state = WatchState.GROWING

            elapsed_ms = int((self._clock() - start) * 1000)
            samples.append(WatchSample(length=length, stable_count=stable_count, elapsed_ms=elapsed_ms, state=self.state))

            if self.state is WatchState.DONE:
                logger.info(
                    "Response stabilized",
                    extra={"extra": {"length": length, "polls": len(samples), "elapsed_ms": elapsed_ms}},
                )
                return WatchResult(text=text, completed=True, samples=samples)
            if elapsed_ms >= max_wait:
                break
            self._sleep(poll / 1000.0)

        logger.warning(
            "Response did not stabilize before timeout",
            extra={"extra": {"max_wait_ms": max_wait, "last_length": len(last_text), "polls": len(samples)}},
        )
        return WatchResult(text=last_text or TIMEOUT_MESSAGE, completed=False, samples=samples)

    def _read(self) -> str:
        try:
            return self._surface.read_output() or ""
        except AutomationError as exc:
            logger.warning("Failed to read response text", extra={"extra": {"error": exc.message}})
            return ""
