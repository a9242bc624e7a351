# tests/unit/engine/test_sink.py
"""Tests for the per-request synthetic delivery sink."""

import pytest

from swarmrest.contracts.host import DeliverySink
from swarmrest.contracts.locator import Locator
from swarmrest.engine.sink import SyntheticSink


@pytest.fixture
def sink() -> SyntheticSink:
    return SyntheticSink("alice~api~swarm~test")


class TestSyntheticSink:
    """Tests for SyntheticSink."""

    def test_implements_delivery_sink(self, sink: SyntheticSink) -> None:
        assert isinstance(sink, DeliverySink)
        assert sink.id == "alice~api~swarm~test"

    def test_acknowledgements_are_not_errors(self, sink: SyntheticSink) -> None:
        sink.deliver(Locator.parse("/Mouse#A!v+u.set"), {"x": 1})

        assert sink.last_error("/Mouse#A") is None
        assert dict(sink.errors) == {}

    def test_error_operation_recorded(self, sink: SyntheticSink) -> None:
        sink.deliver(Locator.parse("/Mouse#A!v+u.error"), "rejected")

        assert sink.last_error("/Mouse#A") == "rejected"

    def test_error_callback_recorded(self, sink: SyntheticSink) -> None:
        sink.error(Locator.parse("/Mouse#A!v+u.set"), "not open")

        assert sink.last_error("/Mouse#A") == "not open"

    def test_last_error_wins(self, sink: SyntheticSink) -> None:
        sink.error(Locator.parse("/Mouse#A.set"), "first")
        sink.deliver(Locator.parse("/Mouse#A.error"), "second")

        assert sink.last_error("/Mouse#A") == "second"

    def test_errors_keyed_by_target(self, sink: SyntheticSink) -> None:
        sink.error(Locator.parse("/Mouse#A.set"), "a")
        sink.error(Locator.parse("/Mouse#B.set"), "b")

        assert dict(sink.errors) == {"/Mouse#A": "a", "/Mouse#B": "b"}

    def test_discard(self, sink: SyntheticSink) -> None:
        sink.error(Locator.parse("/Mouse#A.set"), "a")

        sink.discard("/Mouse#A")
        sink.discard("/Mouse#never")

        assert sink.last_error("/Mouse#A") is None

    def test_errors_view_is_read_only(self, sink: SyntheticSink) -> None:
        with pytest.raises(TypeError):
            sink.errors["/Mouse#A"] = "x"  # type: ignore[index]

    def test_sinks_do_not_share_state(self) -> None:
        first = SyntheticSink("a~api~h")
        second = SyntheticSink("b~api~h")

        first.error(Locator.parse("/Mouse#A.set"), "boom")

        assert second.last_error("/Mouse#A") is None


class TestWatch:
    """Tests for SyntheticSink.watch()."""

    @pytest.mark.asyncio
    async def test_error_resolves_watch(self, sink: SyntheticSink) -> None:
        with sink.watch("/Mouse#A") as rejected:
            sink.error(Locator.parse("/Mouse#A!v+u.on"), "access denied")

            assert rejected.done()
            assert rejected.result() == "access denied"

    @pytest.mark.asyncio
    async def test_error_operation_resolves_watch(self, sink: SyntheticSink) -> None:
        with sink.watch("/Mouse#A") as rejected:
            sink.deliver(Locator.parse("/Mouse#A!v+u.error"), "refused")

            assert await rejected == "refused"

    @pytest.mark.asyncio
    async def test_other_targets_and_acks_ignored(self, sink: SyntheticSink) -> None:
        with sink.watch("/Mouse#A") as rejected:
            sink.error(Locator.parse("/Mouse#B.on"), "b")
            sink.deliver(Locator.parse("/Mouse#A!v+u.set"), {"x": 1})

            assert not rejected.done()

    @pytest.mark.asyncio
    async def test_first_error_wins_but_last_is_recorded(self, sink: SyntheticSink) -> None:
        with sink.watch("/Mouse#A") as rejected:
            sink.error(Locator.parse("/Mouse#A.on"), "first")
            sink.error(Locator.parse("/Mouse#A.on"), "second")

            assert rejected.result() == "first"
        assert sink.last_error("/Mouse#A") == "second"

    @pytest.mark.asyncio
    async def test_exit_cancels_and_drops_watch(self, sink: SyntheticSink) -> None:
        with sink.watch("/Mouse#A") as rejected:
            pass

        assert rejected.cancelled()
        # A later error is still recorded, with nobody waiting
        sink.error(Locator.parse("/Mouse#A.on"), "late")
        assert sink.last_error("/Mouse#A") == "late"
        with sink.watch("/Mouse#A") as again:
            assert not again.done()

    @pytest.mark.asyncio
    async def test_double_watch_rejected(self, sink: SyntheticSink) -> None:
        with sink.watch("/Mouse#A"), pytest.raises(RuntimeError, match="already being watched"):
            with sink.watch("/Mouse#A"):
                pass
