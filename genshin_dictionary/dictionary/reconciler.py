"""
Duplicate removal after a refresh.

Several TextMap ids carry exactly the same text in every language. Each id
gets a signature, the (language, translation) pairs of all its rows in
catalog order. Ids sharing a signature are collapsed onto the smallest one
and the rows of the others are deleted.

Matching is exact: text is compared byte for byte and the set of languages
must be identical, so an id missing a language never collides with a
complete one.
"""

import hashlib
import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Sequence, Set, Tuple

from sqlalchemy import Text, case, cast, delete, func, literal_column, select
from sqlalchemy.dialects.postgresql import aggregate_order_by
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql import Delete

from genshin_dictionary.dictionary.constants import LANGUAGE_ORDER, LANGUAGE_RANK, Language
from genshin_dictionary.dictionary.exceptions import WriteError
from genshin_dictionary.dictionary.models import DictionaryItem

logger = logging.getLogger(__name__)

Row = Tuple[int, Language, str]
Signature = Tuple[Tuple[Language, str], ...]

# Keeps DELETE ... IN (...) under the bind parameter limits of SQLite/asyncpg
DELETE_CHUNK_SIZE = 500


def build_signatures(rows: Iterable[Row]) -> Dict[int, Signature]:
    """Map every vocabulary id to its translations ordered by language"""
    grouped: Dict[int, List[Tuple[Language, str]]] = defaultdict(list)
    for vocabulary_id, language, translation in rows:
        grouped[vocabulary_id].append((Language(language), translation))

    return {
        vocabulary_id: sort_pairs(pairs)
        for vocabulary_id, pairs in grouped.items()
    }


def sort_pairs(pairs: Iterable[Tuple[Language, str]]) -> Signature:
    return tuple(sorted(pairs, key=lambda pair: (LANGUAGE_RANK[pair[0]], pair[1])))


def encode_signature(signature: Signature) -> str:
    """
    Flatten a signature to one string.

    Each pair becomes `language:length:translation`. The length prefix makes
    the encoding unambiguous whatever the translations contain. The SQL side
    builds the same string with string_agg.
    """
    return "".join(
        f"{language.value}:{len(translation)}:{translation}" for language, translation in signature
    )


def signature_digest(signature: Signature) -> bytes:
    return hashlib.blake2b(encode_signature(signature).encode("utf-8"), digest_size=32).digest()


class SignatureIndex:
    """Remembers the smallest id seen for every signature digest"""

    def __init__(self):
        self.canonical: Dict[bytes, int] = {}
        self.redundant: Set[int] = set()

    def add(self, vocabulary_id: int, signature: Signature) -> None:
        digest = signature_digest(signature)
        kept = self.canonical.get(digest)
        if kept is None:
            self.canonical[digest] = vocabulary_id
        elif vocabulary_id < kept:
            self.canonical[digest] = vocabulary_id
            self.redundant.add(kept)
        else:
            self.redundant.add(vocabulary_id)


def find_redundant_ids(rows: Iterable[Row]) -> Set[int]:
    """Return every id whose signature already belongs to a smaller id"""
    index = SignatureIndex()
    for vocabulary_id, signature in build_signatures(rows).items():
        index.add(vocabulary_id, signature)
    return index.redundant


def build_postgres_dedup_statement() -> Delete:
    """
    Single DELETE that keeps the smallest id of every signature.

    Signatures are built in the database with string_agg over the same
    encoding as encode_signature, ordered by catalog rank.
    """
    rank = case(
        *((DictionaryItem.language == language, LANGUAGE_RANK[language]) for language in LANGUAGE_ORDER)
    )
    encoded = func.concat(
        cast(DictionaryItem.language, Text),
        ":",
        func.length(DictionaryItem.vocabulary_translation),
        ":",
        DictionaryItem.vocabulary_translation,
    )
    signatures = (
        select(
            DictionaryItem.vocabulary_id.label("vocabulary_id"),
            func.string_agg(
                encoded,
                aggregate_order_by(literal_column("''"), rank, DictionaryItem.vocabulary_translation),
            ).label("signature"),
        )
        .group_by(DictionaryItem.vocabulary_id)
        .subquery("signatures")
    )
    canonical_ids = select(func.min(signatures.c.vocabulary_id)).group_by(signatures.c.signature)
    return (
        delete(DictionaryItem)
        .where(DictionaryItem.vocabulary_id.not_in(canonical_ids))
        .execution_options(synchronize_session=False)
    )


class Reconciler:
    """Runs the duplicate removal pass against the current table content"""

    def __init__(self, session_factory: async_sessionmaker, chunk_size: int = DELETE_CHUNK_SIZE):
        self.session_factory = session_factory
        self.chunk_size = chunk_size

    async def deduplicate(self) -> int:
        """Delete redundant entries, return the number of rows removed"""
        try:
            async with self.session_factory() as session:
                if session.bind.dialect.name == "postgresql":
                    result = await session.execute(build_postgres_dedup_statement())
                    removed = result.rowcount
                else:
                    redundant = sorted(await self._collect_redundant_ids(session))
                    logger.info("Found %d redundant vocabulary ids", len(redundant))
                    removed = await self._delete_ids(session, redundant)
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            raise WriteError(f"Duplicate removal failed: {e}") from e

        logger.info("Removed %d duplicated rows", removed)
        return removed

    async def _collect_redundant_ids(self, session: AsyncSession) -> Set[int]:
        """Stream rows in id order, holding one id's translations at a time"""
        index = SignatureIndex()
        current_id = None
        pairs: List[Tuple[Language, str]] = []

        result = await session.stream(
            select(
                DictionaryItem.vocabulary_id,
                DictionaryItem.language,
                DictionaryItem.vocabulary_translation,
            ).order_by(DictionaryItem.vocabulary_id)
        )
        async for vocabulary_id, language, translation in result:
            if vocabulary_id != current_id:
                if current_id is not None:
                    index.add(current_id, sort_pairs(pairs))
                current_id, pairs = vocabulary_id, []
            pairs.append((Language(language), translation))
        if current_id is not None:
            index.add(current_id, sort_pairs(pairs))

        return index.redundant

    async def _delete_ids(self, session: AsyncSession, ids: Sequence[int]) -> int:
        removed = 0
        for start in range(0, len(ids), self.chunk_size):
            chunk = ids[start:start + self.chunk_size]
            deleted = await session.execute(
                delete(DictionaryItem)
                .where(DictionaryItem.vocabulary_id.in_(chunk))
                .execution_options(synchronize_session=False)
            )
            removed += deleted.rowcount
        return removed
