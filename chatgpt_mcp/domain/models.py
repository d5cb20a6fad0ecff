"""工具请求与回复检测相关的数据模型。

- Request: 经过校验的一次工具调用（ask / get_conversations）。
- WatchState / WatchSample / WatchResult: ResponseWatcher 轮询输出区域时
  使用的状态机状态、单次采样与最终结果。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Literal, Optional


Operation = Literal["ask", "get_conversations"]
OPERATIONS = ("ask", "get_conversations")


@dataclass
class Request:
    """一次工具调用请求。

    prompt 仅在 operation == "ask" 时必填且非空；
    delay_ms 覆盖默认的限流间隔（毫秒，>= 0）。
    """

    operation: Operation
    prompt: Optional[str] = None
    conversation_id: Optional[str] = None
    delay_ms: Optional[int] = None


class WatchState(str, Enum):
    GROWING = "growing"
    STABILIZING = "stabilizing"
    DONE = "done"


@dataclass
class WatchSample:
    """一次轮询的观测值。"""

    length: int
    stable_count: int
    elapsed_ms: int
    state: WatchState = WatchState.GROWING


@dataclass
class WatchResult:
    """ResponseWatcher 的返回值。

    - text: 回复文本；超时时为最后一次观测到的非空文本或超时提示。
    - completed: 是否因“长度稳定”而结束（False 表示超时降级）。
    - samples: 全部采样记录，便于日志与测试。
    """

    text: str
    completed: bool
    samples: List[WatchSample] = field(default_factory=list)
