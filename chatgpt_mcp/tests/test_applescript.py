import subprocess

import pytest

from chatgpt_mcp.automation import ClipboardSnapshot, create_backend
from chatgpt_mcp.automation.applescript import (
    AppleScriptClipboard,
    MacApp,
    MacChatWindow,
    quote,
    run_applescript,
)
from chatgpt_mcp.automation.registry import CHATGPT_CONFIG, get_target_config
from chatgpt_mcp.config.settings import settings
from chatgpt_mcp.domain.exceptions import AutomationError, EnumerationError


class SettingsStub:
    osascript_timeout_s = 5.0


class FakeRun:
    """记录传给 osascript 的脚本，并返回预设结果。"""

    def __init__(self, stdout="", returncode=0, stderr="", error=None):
        self.stdout = stdout
        self.returncode = returncode
        self.stderr = stderr
        self.error = error
        self.scripts = []
        self.kwargs = []

    def __call__(self, args, input=None, **kw):
        self.scripts.append(input)
        self.kwargs.append(dict(kw, args=args))
        if self.error:
            raise self.error
        return subprocess.CompletedProcess(args, self.returncode, stdout=self.stdout, stderr=self.stderr)


def test_quote_escapes_structural_characters():
    assert quote('say "hi"') == '"say \\"hi\\""'
    assert quote("a\\b") == '"a\\\\b"'
    assert quote("line1\nline2\r\tx") == '"line1\\nline2\\r\\tx"'
    assert quote("日本語 ✓") == '"日本語 ✓"'


def test_run_applescript_passes_script_on_stdin(monkeypatch):
    fake = FakeRun(stdout="result\n")
    monkeypatch.setattr("subprocess.run", fake)
    assert run_applescript("return 1", timeout=3) == "result"
    assert fake.scripts == ["return 1"]
    assert fake.kwargs[0]["args"] == ["osascript", "-"]
    assert fake.kwargs[0]["timeout"] == 3


def test_run_applescript_keeps_inner_newlines(monkeypatch):
    monkeypatch.setattr("subprocess.run", FakeRun(stdout="a\nb\n\n"))
    assert run_applescript("x") == "a\nb\n"


def test_run_applescript_error(monkeypatch):
    monkeypatch.setattr("subprocess.run", FakeRun(returncode=1, stderr="execution error: Can't get window 1. (-1719)\n"))
    with pytest.raises(AutomationError) as exc_info:
        run_applescript("x")
    assert exc_info.value.code == "APPLESCRIPT_ERROR"
    assert exc_info.value.message == "execution error: Can't get window 1. (-1719)"


def test_run_applescript_missing_osascript(monkeypatch):
    monkeypatch.setattr("subprocess.run", FakeRun(error=FileNotFoundError("osascript")))
    with pytest.raises(AutomationError) as exc_info:
        run_applescript("x")
    assert exc_info.value.code == "OSASCRIPT_MISSING"


def test_run_applescript_timeout(monkeypatch):
    monkeypatch.setattr("subprocess.run", FakeRun(error=subprocess.TimeoutExpired(["osascript"], 5)))
    with pytest.raises(AutomationError) as exc_info:
        run_applescript("x", timeout=5)
    assert exc_info.value.code == "APPLESCRIPT_TIMEOUT"


def test_app_is_running(monkeypatch):
    fake = FakeRun(stdout="true\n")
    monkeypatch.setattr("subprocess.run", fake)
    app = MacApp(SettingsStub(), CHATGPT_CONFIG)
    assert app.is_running() is True
    assert 'application process "ChatGPT" exists' in fake.scripts[0]
    assert fake.kwargs[0]["timeout"] == 5.0


def test_app_not_running(monkeypatch):
    monkeypatch.setattr("subprocess.run", FakeRun(stdout="false\n"))
    assert MacApp(SettingsStub(), CHATGPT_CONFIG).is_running() is False


def test_clipboard_write_escapes_content(monkeypatch):
    fake = FakeRun()
    monkeypatch.setattr("subprocess.run", fake)
    AppleScriptClipboard(SettingsStub()).write('He said "go"\nnow')
    assert fake.scripts == ['set the clipboard to "He said \\"go\\"\\nnow"']


def test_clipboard_snapshot_uses_source_form(monkeypatch):
    png = '{«class PNGf»:«data PNGf89504E470D0A1A0A»}'
    fake = FakeRun(stdout=png + "\n")
    monkeypatch.setattr("subprocess.run", fake)
    snapshot = AppleScriptClipboard(SettingsStub()).read()
    assert snapshot == ClipboardSnapshot(source=png)
    assert fake.kwargs[0]["args"] == ["osascript", "-s", "s", "-"]
    assert "the clipboard as record" in fake.scripts[0]


def test_clipboard_restores_non_text_snapshot_verbatim(monkeypatch):
    png = '{«class PNGf»:«data PNGf89504E470D0A1A0A»}'
    fake = FakeRun(stdout=png + "\n")
    monkeypatch.setattr("subprocess.run", fake)
    clipboard = AppleScriptClipboard(SettingsStub())
    snapshot = clipboard.read()
    clipboard.write("prompt")
    clipboard.write(snapshot)
    assert fake.scripts[1] == 'set the clipboard to "prompt"'
    assert fake.scripts[2] == f"set the clipboard to {png}"
    assert fake.kwargs[2]["args"] == ["osascript", "-"]


def test_clipboard_text_snapshot_keeps_quoting(monkeypatch):
    monkeypatch.setattr("subprocess.run", FakeRun(stdout='"say \\"hi\\""\n'))
    snapshot = AppleScriptClipboard(SettingsStub()).read()
    assert snapshot.source == '"say \\"hi\\""'


def test_clipboard_empty_snapshot(monkeypatch):
    monkeypatch.setattr("subprocess.run", FakeRun(stdout=""))
    assert AppleScriptClipboard(SettingsStub()).read().source == '""'


def test_window_scripts_use_configured_paths(monkeypatch):
    fake = FakeRun()
    monkeypatch.setattr("subprocess.run", fake)
    window = MacChatWindow(SettingsStub(), CHATGPT_CONFIG)
    window.focus_input()
    window.click_conversation('My "quoted" chat')
    assert "click text field 1 of group 1 of group 1 of window 1" in fake.scripts[0]
    assert 'click button "My \\"quoted\\" chat" of group 1 of group 1 of window 1' in fake.scripts[1]
    assert 'tell process "ChatGPT"' in fake.scripts[0]


def test_list_conversation_labels(monkeypatch):
    monkeypatch.setattr("subprocess.run", FakeRun(stdout="New chat\nTravel, Europe\nRecipes\n"))
    labels = MacChatWindow(SettingsStub(), CHATGPT_CONFIG).list_conversation_labels()
    assert labels == ["New chat", "Travel, Europe", "Recipes"]


def test_list_conversation_labels_failure(monkeypatch):
    monkeypatch.setattr("subprocess.run", FakeRun(returncode=1, stderr="Can't get group 1"))
    with pytest.raises(EnumerationError):
        MacChatWindow(SettingsStub(), CHATGPT_CONFIG).list_conversation_labels()


def test_get_target_config_case_insensitive():
    assert get_target_config("ChatGPT") is CHATGPT_CONFIG
    with pytest.raises(KeyError):
        get_target_config("claude")


def test_create_backend_overrides_app_name():
    backend = create_backend(app_name="ChatGPT Beta")
    assert backend.app.name == "ChatGPT Beta"


def test_create_backend_defaults_to_configured_app_name(monkeypatch):
    monkeypatch.setattr(settings, "app_name", "ChatGPT Nightly")
    backend = create_backend()
    assert backend.app.name == "ChatGPT Nightly"
