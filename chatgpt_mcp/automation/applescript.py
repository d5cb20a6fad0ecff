"""macOS AppleScript 自动化后端。

本模块负责：

1. 通过 osascript 执行 AppleScript（脚本经 stdin 传入，避免命令行长度限制）。
2. 把用户文本安全地嵌入 AppleScript 字符串字面量（转义反斜杠、引号与换行）。
3. 将脚本错误、超时、osascript 缺失统一包装为 AutomationError。
4. 以源码形式快照剪贴板，保证非文本内容也能原样恢复。
5. 基于 TargetConfig 中的元素路径实现 Clipboard / TargetApp / ChatSurface 协议。
"""

import subprocess
from typing import List, Optional, Union

from chatgpt_mcp.automation.base import ClipboardSnapshot
from chatgpt_mcp.automation.registry import TargetConfig
from chatgpt_mcp.domain.exceptions import AutomationError, EnumerationError


_ESCAPES = (
    ("\\", "\\\\"),
    ('"', '\\"'),
    ("\r", "\\r"),
    ("\n", "\\n"),
    ("\t", "\\t"),
)


def quote(text: str) -> str:
    """把任意文本转换为 AppleScript 字符串字面量（含两侧引号）。

    反斜杠必须最先替换，否则后续插入的转义符会被二次转义。
    """

    escaped = text
    for raw, replacement in _ESCAPES:
        escaped = escaped.replace(raw, replacement)
    return f'"{escaped}"'


def run_applescript(script: str, timeout: Optional[float] = None, source_form: bool = False) -> str:
    """执行一段 AppleScript 并返回其结果文本。

    source_form=True 时以 `-s s` 输出可重新编译的 AppleScript 源码形式，
    用于把剪贴板等复杂值原样带到下一次调用。

    osascript 会在结果末尾追加一个换行，这里只去掉这一个，
    保证剪贴板等内容原样返回。
    """

    args = ["osascript", "-s", "s", "-"] if source_form else ["osascript", "-"]
    try:
        proc = subprocess.run(
            args,
            input=script,
            capture_output=True,
            text=True,
            encoding="utf-8",
            timeout=timeout,
        )
    except FileNotFoundError:
        raise AutomationError(code="OSASCRIPT_MISSING", message="osascript not found; macOS is required")
    except subprocess.TimeoutExpired:
        raise AutomationError(
            code="APPLESCRIPT_TIMEOUT",
            message=f"AppleScript did not finish within {timeout} seconds",
        )
    if proc.returncode != 0:
        raise AutomationError(
            code="APPLESCRIPT_ERROR",
            message=(proc.stderr or "").strip() or f"osascript exited with {proc.returncode}",
            returncode=proc.returncode,
        )
    out = proc.stdout or ""
    if out.endswith("\n"):
        out = out[:-1]
    return out


class _ScriptRunner:
    def __init__(self, settings):
        self._settings = settings

    def _run(self, script: str, source_form: bool = False) -> str:
        return run_applescript(script, timeout=self._settings.osascript_timeout_s, source_form=source_form)


class AppleScriptClipboard(_ScriptRunner):
    """系统剪贴板，读写都走 AppleScript 的 `the clipboard`。

    快照读取 `the clipboard as record`（每种类型一项，图片、文件、富文本都在内），
    以源码形式输出；恢复时把这段源码原样交给 `set the clipboard to`。
    两次 osascript 调用之间无法直接传递 AppleScript 值。
    """

    def read(self) -> ClipboardSnapshot:
        # 空剪贴板无法转为 record，退回文本，再退回空串
        source = self._run(
            "try\n"
            "  return (the clipboard as record)\n"
            "on error\n"
            "  try\n"
            "    return (the clipboard as text)\n"
            "  on error\n"
            '    return ""\n'
            "  end try\n"
            "end try",
            source_form=True,
        )
        return ClipboardSnapshot(source=source or '""')

    def write(self, content: Union[str, ClipboardSnapshot]) -> None:
        if isinstance(content, ClipboardSnapshot):
            self._run(f"set the clipboard to {content.source}")
        else:
            self._run(f"set the clipboard to {quote(content)}")


class MacApp(_ScriptRunner):
    """通过 System Events 检测进程、通过 `activate` 启动并前置应用。"""

    def __init__(self, settings, config: TargetConfig):
        super().__init__(settings)
        self._config = config
        self.name = config.app_name

    def is_running(self) -> bool:
        result = self._run(
            'tell application "System Events"\n'
            f"  return application process {quote(self._config.process_name)} exists\n"
            "end tell"
        )
        return result.strip().lower() == "true"

    def activate(self) -> None:
        self._run(f"tell application {quote(self._config.app_name)} to activate")


class MacChatWindow(_ScriptRunner):
    """ChatGPT 窗口内的元素操作。

    所有操作都在 `tell application "System Events" / tell process ...` 中执行，
    元素路径来自 TargetConfig。
    """

    def __init__(self, settings, config: TargetConfig):
        super().__init__(settings)
        self._config = config

    def _in_process(self, body: str) -> str:
        return self._run(
            'tell application "System Events"\n'
            f"  tell process {quote(self._config.process_name)}\n"
            f"{body}\n"
            "  end tell\n"
            "end tell"
        )

    def focus_input(self) -> None:
        self._in_process(f"    click {self._config.input_path}")

    def paste(self) -> None:
        self._in_process('    keystroke "v" using command down')

    def submit(self) -> None:
        self._in_process("    keystroke return")

    def read_output(self) -> str:
        return self._in_process(
            "    try\n"
            f"      return value of {self._config.output_path}\n"
            "    on error\n"
            '      return ""\n'
            "    end try"
        )

    def click_conversation(self, label: str) -> None:
        self._in_process(f"    click button {quote(label)} of {self._config.container}")

    def list_conversation_labels(self) -> List[str]:
        try:
            raw = self._run(
                "set labels to {}\n"
                'tell application "System Events"\n'
                f"  tell process {quote(self._config.process_name)}\n"
                f"    repeat with chatButton in (buttons of {self._config.container})\n"
                "      set end of labels to (name of chatButton as text)\n"
                "    end repeat\n"
                "  end tell\n"
                "end tell\n"
                "set AppleScript's text item delimiters to linefeed\n"
                "return labels as text"
            )
        except AutomationError as exc:
            raise EnumerationError(code="ENUMERATION_FAILED", message=exc.message, cause=exc.code)
        if not raw:
            return []
        return raw.split("\n")
