"""请求节流。

RateLimiter 只是一个“先等再放行”的闸门，不排队、不重试：
调用方在拿到时间片后必须立刻调用 mark_dispatched()，再开始真正的工作。
"""

import math
import time
from typing import Callable, Optional

from chatgpt_mcp.infrastructure.logging.logger import logger


class RateLimiter:
    """记录上一次发送时间，保证两次发送之间至少间隔 interval 毫秒。

    clock / sleep 可注入，测试中可以替换为假时钟。
    """

    def __init__(
        self,
        default_interval_ms: int = 120000,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.default_interval_ms = default_interval_ms
        self._clock = clock
        self._sleep = sleep
        self.last_dispatch: Optional[float] = None

    def wait_for_slot(self, override_ms: Optional[int] = None) -> None:
        interval_ms = self.default_interval_ms if override_ms is None else override_ms
        if self.last_dispatch is None:
            return
        elapsed_ms = (self._clock() - self.last_dispatch) * 1000.0
        if elapsed_ms < interval_ms:
            wait_ms = interval_ms - elapsed_ms
            logger.info(
                f"Waiting {math.ceil(wait_ms / 1000)} seconds before sending request to ChatGPT...",
                extra={"extra": {"wait_ms": round(wait_ms), "interval_ms": interval_ms}},
            )
            self._sleep(wait_ms / 1000.0)

    def mark_dispatched(self) -> None:
        self.last_dispatch = self._clock()
