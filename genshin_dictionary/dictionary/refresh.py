"""
Full dictionary refresh.

reset -> (fetch, write) for each language in catalog order -> reconcile.

The pipeline is linear and never retries: the first failure ends the run
with a RefreshError naming the phase and language. A failed run leaves the
table incomplete (languages after the failing one stay empty); running the
refresh again rebuilds it from scratch.
"""

import asyncio
import logging
import time
from typing import Dict, Iterable, Optional, Protocol

from sqlalchemy.ext.asyncio import async_sessionmaker

from genshin_dictionary.dictionary.constants import LANGUAGE_ORDER, Language, locator_for
from genshin_dictionary.dictionary.exceptions import (
    DictionaryRefreshException,
    RefreshError,
    RefreshInProgressError,
    RefreshPhase,
)
from genshin_dictionary.dictionary.reconciler import Reconciler
from genshin_dictionary.dictionary.repository import truncate_table
from genshin_dictionary.dictionary.schemas import LanguageLoadResult, RefreshReport
from genshin_dictionary.dictionary.writer import BulkWriter

logger = logging.getLogger(__name__)


class SnapshotFetcher(Protocol):
    async def fetch(self, url: str) -> Dict[int, str]:
        ...


class DictionaryRefresher:
    """Rebuilds dictionary_items from the remote TextMaps"""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        fetcher: SnapshotFetcher,
        writer: Optional[BulkWriter] = None,
        reconciler: Optional[Reconciler] = None,
        languages: Optional[Iterable[Language]] = None,
    ):
        self.session_factory = session_factory
        self.fetcher = fetcher
        self.writer = writer or BulkWriter(session_factory)
        self.reconciler = reconciler or Reconciler(session_factory)
        # Subsets keep catalog order whatever order they were given in
        wanted = {Language(lang) for lang in languages} if languages is not None else set(LANGUAGE_ORDER)
        self.languages = [lang for lang in LANGUAGE_ORDER if lang in wanted]
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def refresh(self) -> RefreshReport:
        if self._lock.locked():
            raise RefreshInProgressError()
        async with self._lock:
            return await self._run()

    async def _run(self) -> RefreshReport:
        started = time.monotonic()
        report = RefreshReport()

        logger.info("Refreshing dictionary for %d languages", len(self.languages))
        try:
            async with self.session_factory() as session:
                await truncate_table(session)
        except DictionaryRefreshException as e:
            raise self._fail(RefreshPhase.RESET, e) from e

        for language in self.languages:
            url = locator_for(language)
            logger.info("Getting data for %s from %s", language.value, url)
            try:
                records = await self.fetcher.fetch(url)
            except DictionaryRefreshException as e:
                raise self._fail(RefreshPhase.FETCH, e, language) from e

            logger.info("Updating data for %s (%d records)", language.value, len(records))
            try:
                inserted = await self.writer.write(language, records)
            except DictionaryRefreshException as e:
                raise self._fail(RefreshPhase.WRITE, e, language) from e
            report.results.append(LanguageLoadResult(language=language, inserted_count=inserted))

        try:
            report.removed_rows = await self.reconciler.deduplicate()
        except DictionaryRefreshException as e:
            raise self._fail(RefreshPhase.RECONCILE, e) from e

        report.elapsed_seconds = round(time.monotonic() - started, 3)
        for result in report.results:
            logger.info("Inserted %d rows for %s", result.inserted_count, result.language.value)
        logger.info(
            "Refresh finished in %.1fs: %d rows inserted, %d duplicates removed",
            report.elapsed_seconds, report.total_inserted, report.removed_rows,
        )
        return report

    @staticmethod
    def _fail(
        phase: RefreshPhase, cause: DictionaryRefreshException, language: Optional[Language] = None
    ) -> RefreshError:
        error = RefreshError(phase=phase, cause=cause, language=language)
        logger.error(error.detail)
        return error
