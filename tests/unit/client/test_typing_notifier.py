from __future__ import annotations

import asyncio

import pytest

from direct_chat.client.debounce import Debouncer, TypingNotifier

DELAY = 0.05


class Recorder:
    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []

    async def start(self, to_user_id: str) -> None:
        self.events.append(("start", to_user_id))

    async def stop(self, to_user_id: str) -> None:
        self.events.append(("stop", to_user_id))


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def notifier(recorder) -> TypingNotifier:
    return TypingNotifier(recorder.start, recorder.stop, delay=DELAY)


@pytest.mark.asyncio
async def test_burst_of_keystrokes_emits_one_start_and_one_stop(notifier, recorder):
    for text in ("h", "he", "hel", "hell", "hello"):
        await notifier.input_changed("bob", text)
        await asyncio.sleep(DELAY / 5)

    assert recorder.events == [("start", "bob")]
    assert notifier.active

    await asyncio.sleep(DELAY * 3)

    assert recorder.events == [("start", "bob"), ("stop", "bob")]
    assert not notifier.active


@pytest.mark.asyncio
async def test_clearing_input_stops_immediately(notifier, recorder):
    await notifier.input_changed("bob", "hi")
    await notifier.input_changed("bob", "")

    assert recorder.events == [("start", "bob"), ("stop", "bob")]
    await asyncio.sleep(DELAY * 2)
    assert recorder.events == [("start", "bob"), ("stop", "bob")]


@pytest.mark.asyncio
async def test_attachment_counts_as_input(notifier, recorder):
    await notifier.input_changed("bob", "", has_attachment=True)

    assert recorder.events == [("start", "bob")]
    await notifier.stop()


@pytest.mark.asyncio
async def test_stop_when_idle_emits_nothing(notifier, recorder):
    await notifier.stop()
    await notifier.input_changed("bob", "   ")

    assert recorder.events == []


@pytest.mark.asyncio
async def test_switching_target_stops_previous(notifier, recorder):
    await notifier.input_changed("bob", "hi")
    await notifier.input_changed("carol", "hi")

    assert recorder.events == [("start", "bob"), ("stop", "bob"), ("start", "carol")]
    await notifier.stop()
    assert recorder.events[-1] == ("stop", "carol")


@pytest.mark.asyncio
async def test_debouncer_fires_once_with_last_args():
    calls: list[str] = []

    async def callback(term: str) -> None:
        calls.append(term)

    debouncer = Debouncer(DELAY, callback)
    debouncer.trigger("a")
    debouncer.trigger("ab")
    debouncer.trigger("abc")
    await asyncio.sleep(DELAY * 3)

    assert calls == ["abc"]
    assert not debouncer.pending


@pytest.mark.asyncio
async def test_debouncer_cancel():
    calls: list[str] = []

    async def callback() -> None:
        calls.append("fired")

    debouncer = Debouncer(DELAY, callback)
    debouncer.trigger()
    debouncer.cancel()
    await asyncio.sleep(DELAY * 2)

    assert calls == []
