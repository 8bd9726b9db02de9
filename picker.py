#!/usr/bin/env python3
"""Book Roulette CLI - keep a reading list and let chance pick the next book."""
import argparse
import asyncio
import sys
import json
from tabulate import tabulate
from bookroulette.app import BookRoulette
from bookroulette.config import Config
from bookroulette.errors import RouletteError
from bookroulette.shell import RouletteShell
from bookroulette.store import open_store
import logging

logger = logging.getLogger(__name__)


def setup_app(config: Config) -> BookRoulette:
    """Open the configured store and load saved state."""
    return BookRoulette(open_store(config), config)


def position(value: str) -> int:
    """argparse type for 1-based positions shown by list/history."""
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError("positions start at 1")
    return number - 1


def display_books(books, format_type: str):
    """Display books in specified format."""
    if not books:
        print("Your collection is empty. Add some books!")
        return

    if format_type == "table":
        headers = ["#", "Title", "Authors", "Published", "Publisher"]
        rows = [
            [
                i,
                book.title[:50] + "..." if len(book.title) > 50 else book.title,
                book.authors_str[:30] + "..." if len(book.authors_str) > 30 else book.authors_str,
                book.published_date or "Unknown",
                book.publisher or "",
            ]
            for i, book in enumerate(books, 1)
        ]
        print("\n" + tabulate(rows, headers=headers, tablefmt="grid"))

    elif format_type == "json":
        print(json.dumps([book.to_dict() for book in books], indent=2, ensure_ascii=False))

    elif format_type == "compact":
        for i, book in enumerate(books, 1):
            print(f"{i}. {book.title} - {book.authors_str}")


def add_book(args, config: Config):
    app = setup_app(config)
    try:
        book = app.add_manual(args.title)
        print(f"✅ Book added to your collection: {book.title}")
    finally:
        app.close()


def list_books(args, config: Config):
    app = setup_app(config)
    try:
        display_books(app.books, args.format)
    finally:
        app.close()


def edit_book(args, config: Config):
    app = setup_app(config)
    try:
        if args.index >= len(app.books):
            raise RouletteError(f"There is no book #{args.index + 1}")
        book = app.edit_title(args.index, args.title)
        print(f"✅ Book updated successfully: {book.title}")
    finally:
        app.close()


def remove_book(args, config: Config):
    app = setup_app(config)
    try:
        if args.index >= len(app.books):
            raise RouletteError(f"There is no book #{args.index + 1}")
        book = app.delete_book(args.index)
        print(f"✅ Book removed from your collection: {book.title}")
    finally:
        app.close()


def search_books(args, config: Config):
    """Search Google Books, optionally adding one of the results."""
    app = setup_app(config)
    try:
        books = app.search_now(args.query)
        if not books:
            print(f"No results for {args.query!r} (queries need {config.MIN_QUERY_LENGTH}+ characters)")
            return

        display_books(books, "table")

        if args.add is not None:
            if args.add >= len(books):
                raise RouletteError(f"There is no result #{args.add + 1}")
            book = app.add_book(books[args.add])
            print(f"✅ Book added to your collection: {book.title}")
    finally:
        app.close()


async def run_roulette(args, config: Config):
    """Spin the roulette, animating in place."""
    app = setup_app(config)
    books = app.books
    width = max((len(book.title) for book in books), default=0)

    def render(index, state):
        sys.stdout.write(f"\r🎲 {books[index].title:<{width}}")
        sys.stdout.flush()

    try:
        result = await app.run_roulette(on_tick=render)
        print(f"\n📚 Your next read: {result.title}")
    finally:
        await app.aclose()


def show_history(args, config: Config):
    app = setup_app(config)
    try:
        if args.remove is not None:
            if args.remove >= len(app.history):
                raise RouletteError(f"There is no history entry #{args.remove + 1}")
            entry = app.delete_history(args.remove)
            print(f"✅ Removed {entry.title!r} from history")
            return

        entries = app.history.entries
        if not entries:
            print("No history yet. Run the roulette to select your first book!")
            return

        rows = [
            [
                i,
                entry.title,
                entry.timestamp.astimezone().strftime("%Y-%m-%d %H:%M"),
                "Latest" if i == 1 else "",
            ]
            for i, entry in enumerate(entries, 1)
        ]
        print("\n" + tabulate(rows, headers=["#", "Title", "Picked", ""], tablefmt="grid"))
    finally:
        app.close()


def show_logs(args, config: Config):
    app = setup_app(config)
    try:
        if args.clear:
            app.clear_logs()
            print("✅ Logs cleared")
            return

        entries = app.request_log.entries
        if not entries:
            print("No logs available")
            return

        for entry in entries:
            print("=" * 50)
            print(f"{entry.timestamp}  {entry.status.value.upper()}")
            print(entry.action)
            print(entry.details)
        print("=" * 50)
    finally:
        app.close()


def set_key(args, config: Config):
    app = setup_app(config)
    try:
        app.save_api_key(args.key)
        print("✅ API key saved" if args.key.strip() else "✅ API key removed")
    finally:
        app.close()


async def run_shell(args, config: Config):
    await RouletteShell(setup_app(config)).run()


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Book Roulette - let fate decide what you should read next",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Build a collection
  %(prog)s add "The Left Hand of Darkness"
  %(prog)s search "piranesi" --add 1

  # Let the roulette choose
  %(prog)s run
  %(prog)s history

  # Interactive mode with search-as-you-type
  %(prog)s shell
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    add_parser = subparsers.add_parser("add", help="Add a book by title")
    add_parser.add_argument("title", help="Book title")

    list_parser = subparsers.add_parser("list", help="Show the collection")
    list_parser.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")

    edit_parser = subparsers.add_parser("edit", help="Change a book's title")
    edit_parser.add_argument("index", type=position, help="Book number as shown by list")
    edit_parser.add_argument("title", help="New title")

    remove_parser = subparsers.add_parser("remove", help="Remove a book")
    remove_parser.add_argument("index", type=position, help="Book number as shown by list")

    search_parser = subparsers.add_parser("search", help="Search Google Books")
    search_parser.add_argument("query", help="Search query")
    search_parser.add_argument("--add", type=position, metavar="N", help="Add result N to the collection")

    subparsers.add_parser("run", help="Run the roulette")

    history_parser = subparsers.add_parser("history", help="Show past picks")
    history_parser.add_argument("--remove", type=position, metavar="N", help="Delete history entry N")

    logs_parser = subparsers.add_parser("logs", help="Show the API request log")
    logs_parser.add_argument("--clear", action="store_true", help="Clear the log")

    key_parser = subparsers.add_parser("set-key", help="Save the Google Books API key (empty string removes it)")
    key_parser.add_argument("key", help="API key")

    subparsers.add_parser("shell", help="Interactive mode")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    config = Config()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.WARNING),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    commands = {
        "add": add_book,
        "list": list_books,
        "edit": edit_book,
        "remove": remove_book,
        "search": search_books,
        "history": show_history,
        "logs": show_logs,
        "set-key": set_key,
    }

    try:
        if args.command == "run":
            asyncio.run(run_roulette(args, config))
        elif args.command == "shell":
            asyncio.run(run_shell(args, config))
        else:
            commands[args.command](args, config)

    except RouletteError as e:
        print(f"❌ {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("\n⚠️  Interrupted by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"❌ Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
