import pytest

from dueq.core.events import EventHub, QueueEvent
from dueq.domain.errors import DueQError, StoreError


def test_event_names():
    assert QueueEvent.ERROR.value == "error"
    assert QueueEvent.JOB_ERROR.value == "job error"


def test_event_accepts_plain_strings():
    hub = EventHub()
    hub.on("job error", print)
    assert hub.listeners(QueueEvent.JOB_ERROR) == [print]


def test_unknown_event_name_rejected():
    with pytest.raises(ValueError):
        EventHub().on("jobs error", print)


async def test_emit_reaches_sync_and_async_listeners():
    hub = EventHub()
    seen: list[str] = []

    async def async_listener(err: DueQError) -> None:
        seen.append(f"async:{err}")

    hub.on(QueueEvent.ERROR, lambda err: seen.append(f"sync:{err}"))
    hub.on(QueueEvent.ERROR, async_listener)

    await hub.emit(QueueEvent.ERROR, DueQError("boom"))

    assert seen == ["sync:boom", "async:boom"]


async def test_emit_only_reaches_matching_event():
    hub = EventHub()
    errors: list[DueQError] = []
    hub.on(QueueEvent.JOB_ERROR, errors.append)

    await hub.emit(QueueEvent.ERROR, DueQError("infra"))

    assert errors == []


async def test_raising_listener_does_not_stop_others():
    hub = EventHub()
    errors: list[DueQError] = []

    def broken(err: DueQError) -> None:
        raise RuntimeError("listener bug")

    hub.on(QueueEvent.ERROR, broken)
    hub.on(QueueEvent.ERROR, errors.append)

    err = StoreError("Failed to fetch member from t", ConnectionError("refused"))
    await hub.emit(QueueEvent.ERROR, err)

    assert errors == [err]


async def test_off_removes_listener():
    hub = EventHub()
    errors: list[DueQError] = []
    hub.on(QueueEvent.ERROR, errors.append)
    hub.off(QueueEvent.ERROR, errors.append)

    await hub.emit(QueueEvent.ERROR, DueQError("boom"))

    assert errors == []


def test_off_unknown_listener_is_noop():
    EventHub().off(QueueEvent.ERROR, print)


async def test_emit_without_listeners():
    await EventHub().emit(QueueEvent.ERROR, DueQError("nobody listens"))
