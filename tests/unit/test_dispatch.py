"""Unit tests for EventDispatcher."""

import asyncio

import pytest

from wifiauto.dispatch import Event, EventDispatcher, EventKind


class TestDispatch:
    @pytest.mark.asyncio
    async def test_dispatch_routes_payload(self):
        dispatcher = EventDispatcher()
        seen = []

        async def _handler(payload):
            seen.append(payload)
            return "done"

        dispatcher.register(EventKind.BOOT, _handler)
        assert await dispatcher.dispatch(Event(EventKind.BOOT, {"a": 1})) == "done"
        assert seen == [{"a": 1}]

    @pytest.mark.asyncio
    async def test_missing_handler(self):
        assert await EventDispatcher().dispatch(Event("unknown")) is None

    @pytest.mark.asyncio
    async def test_handler_failure_is_contained(self):
        dispatcher = EventDispatcher()

        async def _boom(payload):
            raise RuntimeError("boom")

        dispatcher.register(EventKind.BOOT, _boom)
        assert await dispatcher.dispatch(Event(EventKind.BOOT)) is None


class TestRun:
    @pytest.mark.asyncio
    async def test_queued_events_handled_then_stop(self):
        dispatcher = EventDispatcher()
        seen = []

        async def _handler(payload):
            seen.append(payload)

        dispatcher.register(EventKind.PERIODIC_TICK, _handler)
        dispatcher.post(Event(EventKind.PERIODIC_TICK, 1))
        dispatcher.post(Event(EventKind.PERIODIC_TICK, 2))
        dispatcher.stop()
        await asyncio.wait_for(dispatcher.run(), timeout=1)
        assert sorted(seen) == [1, 2]
        assert not dispatcher.running

    @pytest.mark.asyncio
    async def test_handlers_do_not_block_each_other(self):
        dispatcher = EventDispatcher()
        release = asyncio.Event()
        order = []

        async def _slow(payload):
            await release.wait()
            order.append("slow")

        async def _fast(payload):
            order.append("fast")
            release.set()

        dispatcher.register(EventKind.BOOT, _slow)
        dispatcher.register(EventKind.PERIODIC_TICK, _fast)
        runner = asyncio.ensure_future(dispatcher.run())
        dispatcher.post(Event(EventKind.BOOT))
        dispatcher.post(Event(EventKind.PERIODIC_TICK))
        dispatcher.stop()
        await asyncio.wait_for(runner, timeout=1)
        assert order == ["fast", "slow"]

    @pytest.mark.asyncio
    async def test_post_from_other_thread(self):
        dispatcher = EventDispatcher()
        seen = []

        async def _handler(payload):
            seen.append(payload)
            dispatcher.stop()

        dispatcher.register(EventKind.RADIO_CHANGED, _handler)
        runner = asyncio.ensure_future(dispatcher.run())
        await asyncio.sleep(0)
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None, dispatcher.post, Event(EventKind.RADIO_CHANGED, True)
        )
        await asyncio.wait_for(runner, timeout=1)
        assert seen == [True]

    def test_built_outside_loop_runs_on_each_new_loop(self):
        dispatcher = EventDispatcher()
        seen = []

        async def _handler(payload):
            seen.append(payload)

        async def _consume():
            runner = asyncio.ensure_future(dispatcher.run())
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            dispatcher.stop()
            await asyncio.wait_for(runner, timeout=1)

        dispatcher.register(EventKind.BOOT, _handler)
        dispatcher.post(Event(EventKind.BOOT, "first"))
        asyncio.run(_consume())
        dispatcher.post(Event(EventKind.BOOT, "second"))
        asyncio.run(_consume())
        assert seen == ["first", "second"]

    @pytest.mark.asyncio
    async def test_events_after_stop_are_kept(self):
        dispatcher = EventDispatcher()
        seen = []

        async def _handler(payload):
            seen.append(payload)

        dispatcher.register(EventKind.BOOT, _handler)
        dispatcher.stop()
        dispatcher.post(Event(EventKind.BOOT, "late"))
        await asyncio.wait_for(dispatcher.run(), timeout=1)
        assert seen == []
        dispatcher.stop()
        await asyncio.wait_for(dispatcher.run(), timeout=1)
        assert seen == ["late"]
