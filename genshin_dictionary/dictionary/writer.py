import asyncio
import logging
from itertools import islice
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import async_sessionmaker

from genshin_dictionary.config import settings
from genshin_dictionary.dictionary.constants import Language
from genshin_dictionary.dictionary.exceptions import WriteError
from genshin_dictionary.dictionary.models import DictionaryItem
from genshin_dictionary.dictionary.progress import NullProgressReporter, ProgressReporter, format_status

logger = logging.getLogger(__name__)

Record = Tuple[int, str]


def chunked(records: Iterable[Record], size: int) -> Iterator[List[Record]]:
    iterator = iter(records)
    while True:
        chunk = list(islice(iterator, size))
        if not chunk:
            return
        yield chunk


class BulkWriter:
    """
    Inserts one language's snapshot into dictionary_items.

    Records go out in sequential batches; inside a batch every insert runs
    concurrently on its own pooled session. A failed insert fails its batch
    and no further batch is started.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        batch_size: Optional[int] = None,
        reporter: Optional[ProgressReporter] = None,
        preview_length: Optional[int] = None,
    ):
        self.session_factory = session_factory
        self.batch_size = batch_size or settings.INSERT_BATCH_SIZE
        self.reporter = reporter or NullProgressReporter()
        self.preview_length = preview_length or settings.PREVIEW_LENGTH
        self.completed = 0

    async def _execute_insert(self, language: Language, vocabulary_id: int, translation: str) -> None:
        async with self.session_factory() as session:
            await session.execute(
                insert(DictionaryItem).values(
                    vocabulary_id=vocabulary_id,
                    language=language,
                    vocabulary_translation=translation,
                )
            )
            await session.commit()

    async def _insert_one(self, language: Language, vocabulary_id: int, translation: str) -> None:
        try:
            await self._execute_insert(language, vocabulary_id, translation)
        finally:
            # Runs on the event loop thread only, so no lock is needed
            self.completed += 1
            self.reporter.advance(
                format_status(language, vocabulary_id, translation, self.preview_length)
            )

    async def write(self, language: Language, records: Dict[int, str]) -> int:
        """Insert every record and return how many were accepted for insertion"""
        total = len(records)
        self.completed = 0
        if total == 0:
            logger.info("No records to insert for %s", language.value)
            return 0

        self.reporter.start(language, total)
        try:
            for batch_number, batch in enumerate(chunked(records.items(), self.batch_size), 1):
                results = await asyncio.gather(
                    *(self._insert_one(language, voc_id, text) for voc_id, text in batch),
                    return_exceptions=True,
                )
                failures = [r for r in results if isinstance(r, BaseException)]
                if failures:
                    error = failures[0]
                    logger.error(
                        "Batch %d for %s failed: %d/%d inserts rejected (%s)",
                        batch_number, language.value, len(failures), len(batch), error,
                    )
                    if not isinstance(error, Exception):
                        raise error
                    raise WriteError(
                        f"Insert into dictionary_items failed for {language.value}: {error}"
                    ) from error
                logger.debug(
                    "Batch %d for %s done (%d/%d)", batch_number, language.value, self.completed, total
                )
        finally:
            self.reporter.finish()

        logger.info("Inserted %d %s records", total, language.value)
        return total
