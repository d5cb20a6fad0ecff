import threading
import time

import pytest

from chatgpt_mcp.domain.exceptions import AutomationError, InputDeliveryError, UnreachableTargetError
from chatgpt_mcp.flows.conversations import ConversationSelector
from chatgpt_mcp.flows.transport import InputTransport, paste_ingest_seconds


def _fail(step):
    return AutomationError(code="APPLESCRIPT_ERROR", message=f"{step} failed")


class FakeClipboard:
    def __init__(self, events, content="user copied this", fail_writes=()):
        self.events = events
        self.content = content
        self.fail_writes = set(fail_writes)
        self.writes = 0

    def read(self):
        self.events.append(("clipboard.read", self.content))
        return self.content

    def write(self, content):
        self.writes += 1
        if self.writes in self.fail_writes:
            raise _fail("clipboard")
        self.events.append(("clipboard.write", content))
        self.content = content


class FakeApp:
    name = "ChatGPT"

    def __init__(self, events, fail=False):
        self.events = events
        self.fail = fail

    def is_running(self):
        return True

    def activate(self):
        if self.fail:
            raise _fail("activate")
        self.events.append(("activate",))


class FakeSurface:
    def __init__(self, events, fail_on=()):
        self.events = events
        self.fail_on = set(fail_on)

    def _do(self, step, *args):
        if step in self.fail_on:
            raise _fail(step)
        self.events.append((step,) + args)

    def focus_input(self):
        self._do("focus")

    def paste(self):
        self._do("paste")

    def submit(self):
        self._do("submit")

    def click_conversation(self, label):
        self._do("click", label)

    def read_output(self):
        return ""

    def list_conversation_labels(self):
        return []


def _transport(events, surface=None, clipboard=None, app=None, sleeps=None):
    sleeps = sleeps if sleeps is not None else []
    surface = surface or FakeSurface(events)
    return InputTransport(
        app=app or FakeApp(events),
        surface=surface,
        clipboard=clipboard or FakeClipboard(events),
        selector=ConversationSelector(surface, settle_ms=1000, sleep=sleeps.append),
        activate_settle_ms=1000,
        focus_settle_ms=500,
        sleep=sleeps.append,
    )


def test_send_pastes_and_restores_clipboard():
    events = []
    sleeps = []
    clipboard = FakeClipboard(events)
    _transport(events, clipboard=clipboard, sleeps=sleeps).send('say "hi"\nplease')

    assert events == [
        ("activate",),
        ("clipboard.read", "user copied this"),
        ("clipboard.write", 'say "hi"\nplease'),
        ("focus",),
        ("paste",),
        ("submit",),
        ("clipboard.write", "user copied this"),
    ]
    assert clipboard.content == "user copied this"
    assert sleeps == [1.0, 0.5, 1.0]


def test_clipboard_restored_when_focus_fails():
    events = []
    clipboard = FakeClipboard(events)
    surface = FakeSurface(events, fail_on={"focus"})
    with pytest.raises(InputDeliveryError) as exc_info:
        _transport(events, surface=surface, clipboard=clipboard).send("hello")

    assert exc_info.value.extra["step"] == "focus"
    assert clipboard.content == "user copied this"
    assert ("paste",) not in events
    assert ("submit",) not in events
    assert events[-1] == ("clipboard.write", "user copied this")


def test_clipboard_restored_when_submit_fails():
    events = []
    clipboard = FakeClipboard(events)
    surface = FakeSurface(events, fail_on={"submit"})
    with pytest.raises(InputDeliveryError):
        _transport(events, surface=surface, clipboard=clipboard).send("hello")
    assert clipboard.content == "user copied this"


def test_conversation_selected_before_snapshot():
    events = []
    sleeps = []
    _transport(events, sleeps=sleeps).send("hello", "Trip planning")
    assert events[1] == ("click", "Trip planning")
    assert events[2][0] == "clipboard.read"
    assert sleeps[:2] == [1.0, 1.0]


def test_missing_conversation_does_not_abort_send():
    events = []
    surface = FakeSurface(events, fail_on={"click"})
    _transport(events, surface=surface).send("hello", "Gone")
    assert ("submit",) in events


def test_activation_failure_is_unreachable_target():
    events = []
    clipboard = FakeClipboard(events)
    with pytest.raises(UnreachableTargetError):
        _transport(events, clipboard=clipboard, app=FakeApp(events, fail=True)).send("hello")
    assert not any(e[0].startswith("clipboard") for e in events)


def test_restore_failure_does_not_fail_successful_send():
    events = []
    clipboard = FakeClipboard(events, fail_writes={2})
    _transport(events, clipboard=clipboard).send("hello")
    assert ("submit",) in events


def test_long_prompt_waits_longer_before_submit():
    events = []
    sleeps = []
    _transport(events, sleeps=sleeps).send("a" * 2500)
    assert sleeps[-1] == pytest.approx(2.5)


def test_paste_ingest_seconds():
    assert paste_ingest_seconds("") == 1.0
    assert paste_ingest_seconds("x" * 999) == 1.0
    assert paste_ingest_seconds("x" * 4000) == 4.0


def test_opaque_snapshot_is_restored_unchanged():
    events = []
    snapshot = object()
    clipboard = FakeClipboard(events, content=snapshot)
    _transport(events, clipboard=clipboard).send("hello")
    assert clipboard.content is snapshot
    assert events[-1] == ("clipboard.write", snapshot)


class SlowClipboard(FakeClipboard):
    """write 中让出 CPU，放大并发发送时的交错窗口。"""

    def write(self, content):
        time.sleep(0.01)
        super().write(content)


def test_concurrent_sends_do_not_interleave_clipboard_access():
    events = []
    clipboard = SlowClipboard(events)
    transport = _transport(events, clipboard=clipboard)
    barrier = threading.Barrier(3)
    errors = []

    def worker(prompt):
        barrier.wait()
        try:
            transport.send(prompt)
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(p,)) for p in ("first", "second", "third")]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert errors == []
    clip = [e for e in events if e[0].startswith("clipboard")]
    assert len(clip) == 9
    prompts = []
    for i in range(0, len(clip), 3):
        read, write_prompt, restore = clip[i:i + 3]
        assert read == ("clipboard.read", "user copied this")
        assert write_prompt[0] == "clipboard.write"
        assert restore == ("clipboard.write", "user copied this")
        prompts.append(write_prompt[1])
    assert sorted(prompts) == ["first", "second", "third"]
    assert clipboard.content == "user copied this"
