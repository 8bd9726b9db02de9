"""Tests for the interactive shell."""
import asyncio
import io
import random
import threading
import time

import pytest

from bookroulette.app import BookRoulette
from bookroulette.config import Config
from bookroulette.engine import RunTiming
from bookroulette.models import Book
from bookroulette.shell import RouletteShell
from bookroulette.store import MemoryStore

FAST = RunTiming().scaled(0.01)


class FakeAsyncClient:
    def __init__(self):
        self.api_key = None
        self.queries = []

    async def search(self, query, max_results=5):
        self.queries.append(query)
        return [Book(f"g{i}", f"{query.title()} {i}") for i in range(2)]

    async def close(self):
        pass


def _shell(script=""):
    config = Config()
    config.SEARCH_DEBOUNCE = 0.01
    app = BookRoulette(
        MemoryStore(),
        config,
        async_client=FakeAsyncClient(),
        rng=random.Random(3),
        timing=FAST,
    )
    out = io.StringIO()
    return RouletteShell(app, stdin=io.StringIO(script), stdout=out), app, out


def test_script_adds_rolls_and_waits_at_end_of_input():
    """Test a piped session: the roll finishes before the shell exits."""
    shell, app, out = _shell("add Dune\nadd \"Middle March\"\nroll\n")

    asyncio.run(shell.run())

    text = out.getvalue()
    assert "Added 'Dune'" in text
    assert "Added 'Middle March'" in text
    assert "Your next read:" in text
    assert app.history.latest.title in {"Dune", "Middle March"}


def test_quit_cancels_running_roll():
    """Test that leaving mid-run records nothing."""
    shell, app, out = _shell()

    async def run_test():
        await shell.handle("add A")
        await shell.handle("add B")
        await shell.handle("roll")
        assert app.is_running
        assert await shell.handle("quit") is False
        await shell.shutdown()

    asyncio.run(run_test())

    assert len(app.history) == 0
    assert "Your next read" not in out.getvalue()


def test_roll_errors_are_notices():
    """Test that a too-small collection and a double roll are reported, not raised."""
    shell, app, out = _shell()

    async def run_test():
        await shell.handle("roll")
        await shell.handle("add A")
        await shell.handle("add B")
        await shell.handle("roll")
        await shell.handle("roll")
        await shell.drain()

    asyncio.run(run_test())

    text = out.getvalue()
    assert "❌ Add at least 2 books to run the roulette" in text
    assert "❌ The roulette is already running" in text
    assert len(app.history) == 1


def test_find_supersedes_and_pick_adds():
    """Test debounced search from the prompt."""
    shell, app, out = _shell()

    async def run_test():
        await shell.handle("find dun")
        await shell.handle("find dune messiah")
        await shell.drain()
        await shell.handle("pick 2")

    asyncio.run(run_test())

    assert app.search_box.client.queries == ["dune messiah"]
    assert "Results for 'dune messiah'" in out.getvalue()
    assert [b.title for b in app.books] == ["Dune Messiah 1"]


def test_editing_commands():
    """Test list, edit, rm, history, forget, logs and key."""
    shell, app, out = _shell()

    async def run_test():
        for line in [
            "add Dune",
            "add Emma",
            "edit 2 Emma, revised",
            "rm 1",
            "list",
            "edit 9 Nope",
            "rm zero",
            "history",
            "logs",
            "clearlogs",
            "key abc123",
            "bogus",
        ]:
            assert await shell.handle(line) is True

    asyncio.run(run_test())

    text = out.getvalue()
    assert [b.title for b in app.books] == ["Emma, revised"]
    assert "1. Emma, revised - Unknown" in text
    assert "Usage error" in text
    assert "No history yet" in text
    assert "No logs available" in text
    assert app.api_key == "abc123"
    assert "Unknown command 'bogus'" in text


def test_forget_history_entry():
    """Test deleting a pick from the shell."""
    shell, app, out = _shell()
    app.history.record("Dune")
    app.history.record("Emma")

    asyncio.run(shell.handle("forget 1"))

    assert [e.title for e in app.history.entries] == ["Dune"]


class BlockingInput:
    """A terminal nobody is typing into."""

    def __init__(self):
        self.release = threading.Event()

    def readline(self):
        self.release.wait(10)
        return ""


def test_interrupt_does_not_wait_for_pending_input():
    """Test that cancelling the shell exits while readline is still blocked."""
    shell, app, out = _shell()
    shell.stdin = BlockingInput()

    async def run_test():
        task = asyncio.ensure_future(shell.run())
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    started = time.monotonic()
    try:
        asyncio.run(run_test())
    finally:
        shell.stdin.release.set()

    assert time.monotonic() - started < 5
    assert "Book Roulette" in out.getvalue()
