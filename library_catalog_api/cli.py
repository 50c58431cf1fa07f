#!/usr/bin/env python3
"""
Command line front end for the library catalog API.

Lists, shows, adds, edits and deletes books through a running API
server, using :class:`~library_catalog_api.client.LibraryCatalogClient`.

Usage:
    library-catalog list
    library-catalog show 3f2b...e1
    library-catalog add --title "Dune" --author "Frank Herbert" --isbn 978-0-441-17271-9 --date 1965-08-01
    library-catalog edit 3f2b...e1 --title "Dune" --author "Frank Herbert" --isbn 978-0-441-17271-9 --date 1965-08-01
    library-catalog delete 3f2b...e1 --yes

The server address is taken from ``--base-url`` or the
``LIBRARY_API_URL`` environment variable.
"""

import argparse
import logging
import os
import sys
from typing import Any, Callable, Dict, List, Optional

from library_catalog_api.client import DEFAULT_BASE_URL, LibraryCatalogClient


def format_book(book: Dict[str, Any]) -> str:
    """Render one book as a short multi-line block."""
    return "\n".join(
        [
            f"{book.get('title')} by {book.get('author')}",
            f"  ISBN:       {book.get('isbn')}",
            f"  Published:  {book.get('publicationDate')}",
            f"  ID:         {book.get('_id')}",
        ]
    )


def _book_payload(args: argparse.Namespace) -> Dict[str, Any]:
    return {
        "title": args.title,
        "author": args.author,
        "isbn": args.isbn,
        "publicationDate": args.date,
    }


def _fail(error: Dict[str, Any]) -> int:
    print(f"[!] {error.get('message')}", file=sys.stderr)
    return 1


def cmd_list(client: LibraryCatalogClient, args: argparse.Namespace) -> int:
    books, error = client.list_books()
    if error:
        return _fail(error)
    if not books:
        print("No books in the catalog yet.")
        return 0
    print(f"{len(books)} book(s):")
    for book in books:
        print(format_book(book))
    return 0


def cmd_show(client: LibraryCatalogClient, args: argparse.Namespace) -> int:
    book, error = client.get_book(args.id)
    if error:
        return _fail(error)
    print(format_book(book))
    return 0


def cmd_add(client: LibraryCatalogClient, args: argparse.Namespace) -> int:
    book, error = client.add_book(_book_payload(args))
    if error:
        return _fail(error)
    print("[+] Book added successfully")
    print(format_book(book))
    return 0


def cmd_edit(client: LibraryCatalogClient, args: argparse.Namespace) -> int:
    book, error = client.update_book(args.id, _book_payload(args))
    if error:
        return _fail(error)
    print("[+] Book updated successfully")
    print(format_book(book))
    return 0


def cmd_delete(client: LibraryCatalogClient, args: argparse.Namespace) -> int:
    if not args.yes:
        answer = input(f"Delete book {args.id}? [y/N] ")
        if answer.strip().lower() not in {"y", "yes"}:
            print("Aborted.")
            return 0
    _, error = client.delete_book(args.id)
    if error:
        return _fail(error)
    print("[+] Book deleted successfully")
    return 0


def _add_book_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--title", required=True, help="Book title")
    parser.add_argument("--author", required=True, help="Author name")
    parser.add_argument("--isbn", required=True, help="ISBN number")
    parser.add_argument("--date", required=True, help="Publication date (YYYY-MM-DD)")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="library-catalog", description="Manage the library catalog.")
    ap.add_argument(
        "--base-url",
        default=os.getenv("LIBRARY_API_URL", DEFAULT_BASE_URL),
        help=f"API base URL including the prefix (default: {DEFAULT_BASE_URL})",
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Log HTTP requests and failures")
    sub = ap.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List all books, newest first").set_defaults(handler=cmd_list)

    show = sub.add_parser("show", help="Show one book")
    show.add_argument("id", help="Book ID")
    show.set_defaults(handler=cmd_show)

    add = sub.add_parser("add", help="Add a book")
    _add_book_arguments(add)
    add.set_defaults(handler=cmd_add)

    edit = sub.add_parser("edit", help="Replace a book's fields")
    edit.add_argument("id", help="Book ID")
    _add_book_arguments(edit)
    edit.set_defaults(handler=cmd_edit)

    delete = sub.add_parser("delete", help="Delete a book")
    delete.add_argument("id", help="Book ID")
    delete.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    delete.set_defaults(handler=cmd_delete)
    return ap


def main(
    argv: Optional[List[str]] = None,
    client_factory: Callable[[str], LibraryCatalogClient] = LibraryCatalogClient,
) -> int:
    args = build_parser().parse_args(argv)
    # Failures are already printed as [!] lines; client logs only show up with -v.
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.CRITICAL,
        format="%(levelname)s %(name)s: %(message)s",
    )
    client = client_factory(args.base_url)
    return args.handler(client, args)


if __name__ == "__main__":
    sys.exit(main())
