from __future__ import annotations

import asyncio

import pytest

from errors import IllegalTransitionError, InvalidInputError, NoSubjectDetectedError
from schemas import AnalysisRecord, CornerObservation, EncodedImage
from session import GENERIC_FAILURE, Analyzing, AnalyzerSession, Result, Upload

RECORD = AnalysisRecord(score=85, corners=[CornerObservation(name="Top", angle=60, comment="Crispy")])
IMAGE = EncodedImage(data="aGVsbG8=", mime_type="image/jpeg")


async def _encode_ok(_file):
    return IMAGE


def _session(analyzer, encoder=_encode_ok, **kw):
    alerts = []
    s = AnalyzerSession(analyzer=analyzer, notify=alerts.append, encoder=encoder, **kw)
    return s, alerts


def test_success_reaches_result():
    seen = {}

    async def analyzer(image):
        seen["state"] = s.state
        seen["image"] = image
        return RECORD

    s, alerts = _session(analyzer)
    final = asyncio.run(s.select_file(object(), preview=b"jpeg"))

    assert isinstance(seen["state"], Analyzing)
    assert seen["image"] is IMAGE
    assert final == Result(RECORD)
    assert s.record is RECORD
    assert s.preview == b"jpeg"
    assert alerts == []


def test_sync_analyzer_is_accepted():
    s, _ = _session(lambda image: RECORD)
    assert isinstance(asyncio.run(s.select_file(object())), Result)


def test_analyze_failure_notifies_once_and_resets():
    def analyzer(image):
        raise NoSubjectDetectedError()

    s, alerts = _session(analyzer)
    final = asyncio.run(s.select_file(object(), preview=b"jpeg"))

    assert isinstance(final, Upload)
    assert s.preview is None
    assert alerts == [NoSubjectDetectedError.default_message]


def test_encode_failure_skips_analyzer():
    calls = []

    async def encoder(_file):
        raise InvalidInputError()

    s, alerts = _session(calls.append, encoder=encoder)
    asyncio.run(s.select_file(object()))

    assert calls == []
    assert isinstance(s.state, Upload)
    assert alerts == ["Invalid file type. Please upload an image file."]


def test_unexpected_failure_uses_its_message_or_generic():
    def boom(image):
        raise ConnectionError("network down")

    s, alerts = _session(boom)
    asyncio.run(s.select_file(object()))
    assert alerts == ["network down"]

    def silent(image):
        raise RuntimeError()

    s, alerts = _session(silent)
    asyncio.run(s.select_file(object()))
    assert alerts == [GENERIC_FAILURE]


def test_no_file_is_ignored():
    s, alerts = _session(lambda image: RECORD)
    assert isinstance(asyncio.run(s.select_file(None)), Upload)
    assert alerts == []


def test_illegal_transitions():
    s, _ = _session(lambda image: RECORD)
    with pytest.raises(IllegalTransitionError):
        s.analyze_another()

    asyncio.run(s.select_file(object()))
    with pytest.raises(IllegalTransitionError):
        asyncio.run(s.select_file(object()))

    assert isinstance(s.analyze_another(), Upload)
    assert s.record is None


def test_caption_cycles_while_analyzing():
    shown = []

    async def slow(image):
        await asyncio.sleep(0.2)
        return RECORD

    s, _ = _session(slow, interval=0.03, on_caption=shown.append, captions=("a", "b", "c"))
    asyncio.run(s.select_file(object()))

    assert shown[:4] == ["a", "b", "c", "a"]
    assert s.caption is None


@pytest.mark.parametrize("fail", [False, True])
def test_ticker_never_fires_after_leaving_analyzing(fail):
    shown = []

    async def analyzer(image):
        await asyncio.sleep(0.05)
        if fail:
            raise NoSubjectDetectedError()
        return RECORD

    async def scenario():
        s, _ = _session(analyzer, interval=0.01, on_caption=shown.append)
        await s.select_file(object())
        count = len(shown)
        await asyncio.sleep(0.1)
        assert len(shown) == count
        assert asyncio.all_tasks() == {asyncio.current_task()}
        return s

    s = asyncio.run(scenario())
    assert isinstance(s.state, Upload if fail else Result)


def test_cancellation_resets_without_notifying():
    async def hang(image):
        await asyncio.sleep(10)

    async def scenario():
        s, alerts = _session(hang, interval=0.01)
        task = asyncio.create_task(s.select_file(object()))
        await asyncio.sleep(0.03)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return s, alerts

    s, alerts = asyncio.run(scenario())
    assert isinstance(s.state, Upload)
    assert alerts == []


class _Interrupt(BaseException):
    """Stands in for a UI framework aborting the script mid-render."""


def _failing_renderer(fail_on, exc):
    shown = []

    def render(text):
        shown.append(text)
        if len(shown) == fail_on:
            raise exc

    return render, shown


async def _slow_record(image):
    await asyncio.sleep(0.1)
    return RECORD


@pytest.mark.parametrize("fail_on", [1, 2])
def test_broken_caption_renderer_does_not_fail_the_run(fail_on):
    render, shown = _failing_renderer(fail_on, RuntimeError("render failed"))

    async def scenario():
        s, alerts = _session(_slow_record, interval=0.01, on_caption=render)
        final = await s.select_file(object())
        count = len(shown)
        await asyncio.sleep(0.05)
        assert len(shown) == count
        assert asyncio.all_tasks() == {asyncio.current_task()}
        return final, alerts

    final, alerts = asyncio.run(scenario())
    assert final == Result(RECORD)
    assert alerts == []
    assert len(shown) > fail_on


@pytest.mark.parametrize("fail_on", [1, 2])
def test_interrupted_caption_render_leaves_analyzing(fail_on):
    render, shown = _failing_renderer(fail_on, _Interrupt())

    async def scenario():
        s, alerts = _session(_slow_record, interval=0.01, on_caption=render)
        with pytest.raises(_Interrupt):
            await s.select_file(object(), preview=b"jpeg")
        await asyncio.sleep(0.05)
        assert len(shown) == fail_on
        assert asyncio.all_tasks() == {asyncio.current_task()}
        return s, alerts

    s, alerts = asyncio.run(scenario())
    assert isinstance(s.state, Upload)
    assert s.preview is None
    assert alerts == []


def test_abandon_returns_to_upload():
    s, _ = _session(lambda image: RECORD)
    asyncio.run(s.select_file(object(), preview=b"jpeg"))

    assert isinstance(s.abandon(), Upload)
    assert s.preview is None
    assert s.record is None
