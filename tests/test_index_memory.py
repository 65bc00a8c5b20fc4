import asyncio

import pytest

from dueq.adapters.index.memory import InMemoryIndex
from dueq.domain.models import DueJob, TypeStats

NOW = 1_700_000_000_000

NETSKY = [
    "rio", "thunder", "work-it-out", "high-alert",
    "leave-it-alone", "who-knows", "higher", "tnt",
]


@pytest.fixture
def index() -> InMemoryIndex:
    return InMemoryIndex()


# ---------------------------------------------------------------------------
# schedule / get
# ---------------------------------------------------------------------------


async def test_schedule_then_get(index: InMemoryIndex):
    await index.schedule("karaoke", "many-of-horror", NOW)
    assert await index.get("karaoke", "many-of-horror") == NOW


async def test_get_missing_returns_none(index: InMemoryIndex):
    assert await index.get("karaoke", "nothing") is None
    await index.schedule("karaoke", "a", NOW)
    assert await index.get("karaoke", "nothing") is None


async def test_schedule_upserts(index: InMemoryIndex):
    await index.schedule("karaoke", "a", NOW)
    await index.schedule("karaoke", "a", NOW + 600_000)
    assert await index.get("karaoke", "a") == NOW + 600_000
    assert await index.members("karaoke") == ["a"]


async def test_schedule_registers_type(index: InMemoryIndex):
    await index.schedule("karaoke", "a", NOW)
    await index.schedule("karaoke", "b", NOW)
    assert await index.stats() == [TypeStats(type="karaoke", count=2)]


async def test_get_past_and_future_values(index: InMemoryIndex):
    await index.schedule("t", "past", 0)
    await index.schedule("t", "future", NOW * 2)
    assert await index.get("t", "past") == 0
    assert await index.get("t", "future") == NOW * 2


# ---------------------------------------------------------------------------
# members
# ---------------------------------------------------------------------------


async def test_members_ordered_by_ready_at(index: InMemoryIndex):
    await index.schedule("t", "late", NOW + 10)
    await index.schedule("t", "early", NOW - 10)
    await index.schedule("t", "middle", NOW)
    assert await index.members("t") == ["early", "middle", "late"]


async def test_members_ties_break_on_id(index: InMemoryIndex):
    await index.schedule("t", "b", NOW)
    await index.schedule("t", "a", NOW)
    assert await index.members("t") == ["a", "b"]


async def test_members_of_unknown_type_is_empty(index: InMemoryIndex):
    assert await index.members("nope") == []


# ---------------------------------------------------------------------------
# remove
# ---------------------------------------------------------------------------


async def test_remove_one_of_many_keeps_type(index: InMemoryIndex):
    for song in NETSKY:
        await index.schedule("netsky", song, NOW)
    await index.remove("netsky", NETSKY[0])
    assert sorted(await index.members("netsky")) == sorted(NETSKY[1:])
    assert await index.stats() == [TypeStats(type="netsky", count=len(NETSKY) - 1)]


async def test_remove_last_member_drops_type(index: InMemoryIndex):
    await index.schedule("karaoke", "a", NOW)
    await index.schedule("netsky", "rio", NOW)
    await index.remove("netsky", "rio")
    assert await index.stats() == [TypeStats(type="karaoke", count=1)]
    assert await index.next_due("netsky", NOW) is None


async def test_remove_all_concurrently_drops_type(index: InMemoryIndex):
    for song in NETSKY:
        await index.schedule("netsky", song, NOW)
    await asyncio.gather(*(index.remove("netsky", song) for song in NETSKY))
    assert await index.members("netsky") == []
    assert await index.stats() == []


async def test_remove_missing_is_noop(index: InMemoryIndex):
    await index.schedule("t", "a", NOW)
    await index.remove("t", "nothing")
    await index.remove("other", "nothing")
    assert await index.members("t") == ["a"]


async def test_schedule_after_drain_reregisters(index: InMemoryIndex):
    await index.schedule("t", "a", NOW)
    await index.remove("t", "a")
    await index.schedule("t", "b", NOW)
    assert await index.stats() == [TypeStats(type="t", count=1)]


# ---------------------------------------------------------------------------
# next_due
# ---------------------------------------------------------------------------


async def test_next_due_returns_smallest_eligible(index: InMemoryIndex):
    await index.schedule("t", "later", NOW - 500)
    await index.schedule("t", "first", NOW - 1000)
    await index.schedule("t", "future", NOW + 1000)
    assert await index.next_due("t", NOW) == DueJob(type="t", id="first", ready_at=NOW - 1000)


async def test_next_due_includes_exactly_now(index: InMemoryIndex):
    await index.schedule("t", "a", NOW)
    job = await index.next_due("t", NOW)
    assert job is not None
    assert job.id == "a"


async def test_next_due_never_returns_future(index: InMemoryIndex):
    await index.schedule("t", "a", NOW + 1)
    assert await index.next_due("t", NOW) is None


async def test_next_due_empty_type(index: InMemoryIndex):
    assert await index.next_due("t", NOW) is None


async def test_next_due_is_per_type(index: InMemoryIndex):
    await index.schedule("a", "x", NOW - 10)
    await index.schedule("b", "y", NOW - 20)
    job = await index.next_due("a", NOW)
    assert job is not None
    assert (job.type, job.id) == ("a", "x")


# ---------------------------------------------------------------------------
# stats
# ---------------------------------------------------------------------------


async def test_stats_empty(index: InMemoryIndex):
    assert await index.stats() == []


async def test_stats_counts_every_type(index: InMemoryIndex):
    await index.schedule("b", "1", NOW)
    await index.schedule("a", "1", NOW)
    await index.schedule("a", "2", NOW)
    assert await index.stats() == [
        TypeStats(type="a", count=2),
        TypeStats(type="b", count=1),
    ]
