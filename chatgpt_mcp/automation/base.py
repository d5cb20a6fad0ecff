"""自动化能力抽象接口。

上层流程（InputTransport / ResponseWatcher / Orchestrator）不直接调用
osascript，而是依赖这里的三个协议：

- Clipboard: 系统剪贴板（共享副作用资源），只需 read / write，快照必须能完整恢复。
- TargetApp: 目标应用的存活检测与激活。
- ChatSurface: 聊天窗口中可操作的元素（输入框、输出区域、侧边栏按钮）。

这样测试可以用内存中的 Fake 替换真实系统资源，
也可以在不改流程代码的前提下接入其他平台的自动化后端。
"""

from dataclasses import dataclass
from typing import Any, List, Protocol


@dataclass(frozen=True)
class ClipboardSnapshot:
    """剪贴板全部内容（含图片、文件等非文本类型）的不透明快照，只能原样写回。"""

    source: str


class Clipboard(Protocol):
    """剪贴板协议。

    - read(): 返回当前内容的快照，调用方不解析，只在恢复时交回 write()。
    - write(content): str 按纯文本写入；read() 得到的快照按原样恢复。
    """

    def read(self) -> Any:
        ...

    def write(self, content: Any) -> None:
        ...


class TargetApp(Protocol):
    """目标应用协议。

    - name: 应用名称，用于日志。
    - is_running(): 应用进程是否存在。
    - activate(): 启动（若未运行）并置于前台。
    """

    name: str

    def is_running(self) -> bool:
        ...

    def activate(self) -> None:
        ...


class ChatSurface(Protocol):
    """聊天窗口协议。

    除 read_output 外，所有方法在元素不存在或操作失败时都应抛出
    AutomationError；read_output 找不到输出区域时返回空字符串。
    """

    def focus_input(self) -> None:
        ...

    def paste(self) -> None:
        ...

    def submit(self) -> None:
        ...

    def read_output(self) -> str:
        ...

    def click_conversation(self, label: str) -> None:
        ...

    def list_conversation_labels(self) -> List[str]:
        ...


@dataclass
class AutomationBackend:
    """一组配套的自动化能力，由 create_backend() 构造。"""

    app: TargetApp
    surface: ChatSurface
    clipboard: Clipboard
