"""Interactive roulette shell."""
import asyncio
import logging
import shlex
import sys
import threading
from typing import Awaitable, Callable, Dict, Optional, Set

from bookroulette.engine import RunState
from bookroulette.errors import RouletteError

logger = logging.getLogger(__name__)

HELP = """Commands:
  add TITLE          add a book by title
  find QUERY         search Google Books (results replace the previous search)
  pick N             add search result N
  list               show the collection
  edit N TITLE       rename book N
  rm N               remove book N
  roll               run the roulette
  history            show past picks
  forget N           delete history entry N
  logs               show API request log
  clearlogs          clear the API request log
  key [KEY]          save (or with no KEY, remove) the Google Books API key
  help               show this text
  quit               leave, cancelling anything still running

At end of input the shell waits for a running roll or search to finish."""


class RouletteShell:
    """
    Line-oriented front end to BookRoulette.

    ``roll`` and ``find`` run as background tasks, so the prompt stays
    usable: a second ``roll`` is refused while one is spinning, and a quick
    second ``find`` supersedes the first.
    """

    PROMPT = "roulette> "

    def __init__(self, app, stdin=None, stdout=None):
        self.app = app
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self._tasks: Set[asyncio.Task] = set()
        self._lines: Optional[asyncio.Queue] = None
        self._commands: Dict[str, Callable[[list], Awaitable[bool]]] = {
            "add": self.do_add,
            "find": self.do_find,
            "pick": self.do_pick,
            "list": self.do_list,
            "edit": self.do_edit,
            "rm": self.do_rm,
            "roll": self.do_roll,
            "history": self.do_history,
            "forget": self.do_forget,
            "logs": self.do_logs,
            "clearlogs": self.do_clearlogs,
            "key": self.do_key,
            "help": self.do_help,
            "quit": self.do_quit,
            "exit": self.do_quit,
        }

    def write(self, text: str = "", end: str = "\n") -> None:
        self.stdout.write(text + end)
        self.stdout.flush()

    def notice(self, message: str) -> None:
        self.write(f"❌ {message}")

    def _start_reader(self) -> None:
        """
        Feed stdin lines into a queue from a daemon thread.

        The thread is never joined, so an interrupt does not wait for a
        pending readline the way the default executor would.
        """
        loop = asyncio.get_running_loop()
        self._lines = asyncio.Queue()

        def pump():
            while True:
                line = self.stdin.readline()
                try:
                    loop.call_soon_threadsafe(self._lines.put_nowait, line)
                except RuntimeError:
                    # event loop already closed
                    return
                if not line:
                    return

        threading.Thread(target=pump, name="roulette-stdin", daemon=True).start()

    async def read_line(self) -> str:
        if self._lines is None:
            self._start_reader()
        return await self._lines.get()

    async def run(self) -> None:
        """Read commands until quit or end of input, then tear down."""
        self.write("📚 Book Roulette - type 'help' for commands")
        try:
            while True:
                self.write(self.PROMPT, end="")
                line = await self.read_line()
                if not line:
                    await self.drain()
                    break
                if not await self.handle(line):
                    break
        finally:
            await self.shutdown()

    async def handle(self, line: str) -> bool:
        """Run one command line. Returns False when the shell should stop."""
        try:
            parts = shlex.split(line)
        except ValueError as e:
            self.notice(f"Could not parse command: {e}")
            return True
        if not parts:
            return True

        command = self._commands.get(parts[0].lower())
        if command is None:
            self.notice(f"Unknown command {parts[0]!r} (try 'help')")
            return True
        try:
            return await command(parts[1:])
        except RouletteError as e:
            self.notice(str(e))
        except (IndexError, ValueError):
            self.notice(f"Usage error, see 'help' for {parts[0]}")
        return True

    def _background(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for background rolls and searches to finish."""
        while self._tasks:
            await asyncio.wait(set(self._tasks))

    async def shutdown(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.wait(set(self._tasks))
        await self.app.aclose()

    @staticmethod
    def _position(text: str) -> int:
        """User positions are 1-based."""
        position = int(text)
        if position < 1:
            raise ValueError(position)
        return position - 1

    # Collection

    async def do_add(self, args) -> bool:
        book = self.app.add_manual(" ".join(args))
        self.write(f"✅ Added {book.title!r}")
        return True

    async def do_list(self, args) -> bool:
        books = self.app.books
        if not books:
            self.write("Your collection is empty. Add some books!")
        for i, book in enumerate(books, 1):
            self.write(f"{i}. {book.title} - {book.authors_str}")
        return True

    async def do_edit(self, args) -> bool:
        book = self.app.edit_title(self._position(args[0]), " ".join(args[1:]))
        self.write(f"✅ Book updated: {book.title}")
        return True

    async def do_rm(self, args) -> bool:
        book = self.app.delete_book(self._position(args[0]))
        self.write(f"✅ Removed {book.title!r}")
        return True

    # Search

    async def do_find(self, args) -> bool:
        self._background(self._find(" ".join(args)))
        return True

    async def _find(self, query: str) -> None:
        results = await self.app.search(query)
        if results is None:
            return
        error = self.app.search_box.last_error
        if error is not None:
            self.notice(f"Search failed: {error}")
            return
        if not results:
            self.write(f"No results for {query!r}")
            return
        self.write(f"Results for {query!r}:")
        for i, book in enumerate(results, 1):
            self.write(f"  {i}. {book.title} - {book.authors_str}")

    async def do_pick(self, args) -> bool:
        book = self.app.add_search_result(self._position(args[0]))
        self.write(f"✅ Added {book.title!r}")
        return True

    # Roulette

    async def do_roll(self, args) -> bool:
        books = self.app.books
        width = max((len(book.title) for book in books), default=0)

        def render(index: int, state: RunState) -> None:
            self.write(f"\r🎲 {books[index].title:<{width}}", end="")

        run = self.app.start_roulette(on_tick=render)
        self._tasks.add(run)
        run.add_done_callback(self._tasks.discard)
        self._background(self._announce(run))
        return True

    async def _announce(self, run: asyncio.Task) -> None:
        try:
            result = await run
        except asyncio.TimeoutError:
            logger.error("Roulette run overran its timeout")
            self.notice("The roulette took too long and was stopped")
            return
        self.write(f"\n📚 Your next read: {result.title}")

    # History and logs

    async def do_history(self, args) -> bool:
        entries = self.app.history.entries
        if not entries:
            self.write("No history yet. Run the roulette to select your first book!")
        for i, entry in enumerate(entries, 1):
            stamp = entry.timestamp.astimezone().strftime("%Y-%m-%d %H:%M")
            latest = "  (latest)" if i == 1 else ""
            self.write(f"{i}. {entry.title} - {stamp}{latest}")
        return True

    async def do_forget(self, args) -> bool:
        entry = self.app.delete_history(self._position(args[0]))
        self.write(f"✅ Removed {entry.title!r} from history")
        return True

    async def do_logs(self, args) -> bool:
        entries = self.app.request_log.entries
        if not entries:
            self.write("No logs available")
        for entry in entries:
            self.write(f"[{entry.timestamp}] {entry.status.value.upper()} {entry.action}")
        return True

    async def do_clearlogs(self, args) -> bool:
        self.app.clear_logs()
        self.write("✅ Logs cleared")
        return True

    async def do_key(self, args) -> bool:
        key: Optional[str] = args[0] if args else ""
        self.app.save_api_key(key)
        self.write("✅ API key saved" if key else "✅ API key removed")
        return True

    async def do_help(self, args) -> bool:
        self.write(HELP)
        return True

    async def do_quit(self, args) -> bool:
        return False
