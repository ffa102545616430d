from __future__ import annotations

import pytest

from tutor.services.task_queue import InMemoryTaskQueue


@pytest.mark.asyncio
async def test_jobs_run_in_background_and_join_waits() -> None:
    queue = InMemoryTaskQueue(workers=2)
    seen: list[dict] = []

    async def handler(payload: dict) -> None:
        seen.append(payload)

    queue.register_handler("write_cache", handler)
    await queue.start()
    queue.enqueue("write_cache", {"key": "a"})
    queue.enqueue("write_cache", {"key": "b"})
    await queue.join()
    await queue.stop()

    assert sorted(item["key"] for item in seen) == ["a", "b"]


@pytest.mark.asyncio
async def test_failing_handler_does_not_stop_worker() -> None:
    queue = InMemoryTaskQueue(workers=1)
    seen: list[str] = []

    async def boom(payload: dict) -> None:
        raise RuntimeError("sink unavailable")

    async def ok(payload: dict) -> None:
        seen.append(payload["name"])

    queue.register_handler("boom", boom)
    queue.register_handler("ok", ok)
    await queue.start()
    queue.enqueue("boom", {})
    queue.enqueue("unknown", {})
    queue.enqueue("ok", {"name": "after-failure"})
    await queue.join()

    assert seen == ["after-failure"]
    assert queue.stats().pending_jobs == 0
    await queue.stop()


@pytest.mark.asyncio
async def test_stop_drains_pending_jobs() -> None:
    queue = InMemoryTaskQueue(workers=1)
    seen: list[int] = []

    async def handler(payload: dict) -> None:
        seen.append(payload["n"])

    queue.register_handler("record_analytics", handler)
    await queue.start()
    for n in range(5):
        queue.enqueue("record_analytics", {"n": n})
    await queue.stop()

    assert seen == [0, 1, 2, 3, 4]
    assert queue.stats().backend == "in_memory"
