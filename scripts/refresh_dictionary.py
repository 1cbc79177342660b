#!/usr/bin/env python3
"""
Script to rebuild the dictionary from the Genshin TextMaps
"""
import argparse
import asyncio
import sys
import os

# Add project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

from genshin_dictionary.config import settings
from genshin_dictionary.database import AsyncSessionLocal, create_tables, engine
from genshin_dictionary.dictionary.constants import LANGUAGE_ORDER
from genshin_dictionary.dictionary.exceptions import RefreshError
from genshin_dictionary.dictionary.fetcher import TextMapFetcher
from genshin_dictionary.dictionary.progress import NullProgressReporter, RichProgressReporter
from genshin_dictionary.dictionary.refresh import DictionaryRefresher
from genshin_dictionary.dictionary.writer import BulkWriter
from genshin_dictionary.utils.logging import configure_logging


async def run_refresh(languages, show_progress: bool, ensure_tables: bool) -> int:
    if ensure_tables:
        await create_tables()

    reporter = RichProgressReporter() if show_progress else NullProgressReporter()
    try:
        async with TextMapFetcher() as fetcher:
            refresher = DictionaryRefresher(
                AsyncSessionLocal,
                fetcher=fetcher,
                writer=BulkWriter(AsyncSessionLocal, reporter=reporter),
                languages=languages,
            )
            report = await refresher.refresh()
    except RefreshError as e:
        print(f"❌ {e.detail}", file=sys.stderr)
        return 1
    finally:
        await engine.dispose()

    for result in report.results:
        print(f"📥 {result.language.value}: {result.inserted_count:,} rows")
    print(f"🗑️  Removed {report.removed_rows:,} duplicated rows")
    print(f"✅ Refresh completed in {report.elapsed_seconds:.1f}s, {report.total_inserted:,} rows inserted")
    return 0


def main():
    """Main function"""
    load_dotenv()
    configure_logging(level=settings.LOG_LEVEL, log_file=settings.LOG_FILE)

    parser = argparse.ArgumentParser(description="Rebuild dictionary_items from the remote TextMaps")
    parser.add_argument(
        "--languages",
        nargs="+",
        choices=[lang.value for lang in LANGUAGE_ORDER],
        default=None,
        help="Only load these languages (default: all)",
    )
    parser.add_argument("--no-progress", action="store_true", help="Disable the live progress bar")
    parser.add_argument("--create-tables", action="store_true", help="Create missing tables first")
    args = parser.parse_args()

    show_progress = settings.SHOW_PROGRESS and not args.no_progress
    sys.exit(asyncio.run(run_refresh(args.languages, show_progress, args.create_tables)))


if __name__ == "__main__":
    main()
