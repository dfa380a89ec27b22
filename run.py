"""Command-line entry point for the Library Q&A engine."""

import argparse
import asyncio
import json
import logging
import sys

from pydantic import ValidationError

from libraryqa.config import load_config
from libraryqa.corpus import Catalog, load_catalog
from libraryqa.errors import CorpusUnavailable, InvalidScope
from libraryqa.orchestrator import build_orchestrator, build_request

logger = logging.getLogger("libraryqa")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ask a question about the book library.")
    parser.add_argument("message", nargs="?", default="", help="The question to ask")
    parser.add_argument("--scope", choices=["book", "library"], default="library")
    parser.add_argument("--book-id", dest="book_id", default=None)
    parser.add_argument("--lang", dest="target_language", default="en", help="Answer language code")
    parser.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    parser.add_argument("--list-books", action="store_true", help="Print the catalog and exit")
    parser.add_argument("--book", dest="show_book", metavar="ID", help="Print one book and exit")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Answer one question from the command line and print the JSON response."""
    args = parse_args(argv)
    config = load_config(args.config)
    logging.basicConfig(
        level=config.app.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.list_books:
            catalog = Catalog(load_catalog(config.corpus.catalog_path))
            books = [summary.model_dump() for summary in catalog.summaries()]
            print(json.dumps({"books": books, "tags": catalog.tags()}, ensure_ascii=False, indent=2))
            return 0

        if args.show_book:
            detail = Catalog(load_catalog(config.corpus.catalog_path)).book_detail(args.show_book)
            if detail is None:
                print(json.dumps({"error": f"Book not found: {args.show_book}"}), file=sys.stderr)
                return 1
            print(json.dumps(detail.model_dump(), ensure_ascii=False, indent=2))
            return 0

        orchestrator = build_orchestrator(config)
        orchestrator.warm_up()
    except CorpusUnavailable as exc:
        logger.error("Cannot start: %s", exc)
        return 2

    try:
        request = build_request(
            {
                "message": args.message,
                "scope": args.scope,
                "bookId": args.book_id,
                "targetLanguage": args.target_language,
            }
        )
        response = asyncio.run(orchestrator.answer(request))
    except (ValidationError, InvalidScope) as exc:
        print(json.dumps({"error": str(exc)}, ensure_ascii=False), file=sys.stderr)
        return 1

    print(json.dumps(response.model_dump(by_alias=True), ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
