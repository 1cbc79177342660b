from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import func, select

from genshin_dictionary.dictionary.constants import LANGUAGE_ORDER, LANGUAGE_RANK, Language, locator_for
from genshin_dictionary.dictionary.models import DictionaryItem
from genshin_dictionary.dictionary.schemas import (
    DictionaryEntryResponse,
    DictionaryItemResponse,
    DictionarySearchRequest,
    DictionarySearchResponse,
    DictionaryStatsResponse,
    LanguageCount,
    LanguageSource,
)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class DictionaryService:
    """Read side of the dictionary"""

    def list_languages(self) -> List[LanguageSource]:
        return [LanguageSource(language=lang, url=locator_for(lang)) for lang in LANGUAGE_ORDER]

    async def search(self, db: AsyncSession, request: DictionarySearchRequest) -> DictionarySearchResponse:
        """
        Case insensitive substring search on translations,
        optionally restricted to one language
        """
        pattern = f"%{_escape_like(request.query.strip())}%"
        conditions = [DictionaryItem.vocabulary_translation.ilike(pattern, escape="\\")]
        if request.language is not None:
            conditions.append(DictionaryItem.language == request.language)

        result = await db.execute(
            select(DictionaryItem)
            .where(*conditions)
            .order_by(DictionaryItem.vocabulary_id.asc(), DictionaryItem.language.asc())
            .limit(request.limit)
        )
        items = result.scalars().all()

        count_result = await db.execute(
            select(func.count()).select_from(DictionaryItem).where(*conditions)
        )
        total = count_result.scalar() or 0

        return DictionarySearchResponse(
            results=[DictionaryItemResponse.model_validate(item) for item in items],
            total=total,
            query=request.query,
            limit=request.limit,
        )

    async def get_entry(self, db: AsyncSession, vocabulary_id: int) -> Optional[DictionaryEntryResponse]:
        """All translations of one vocabulary id, or None"""
        result = await db.execute(
            select(DictionaryItem).where(DictionaryItem.vocabulary_id == vocabulary_id)
        )
        items = sorted(result.scalars().all(), key=lambda item: LANGUAGE_RANK[Language(item.language)])
        if not items:
            return None

        return DictionaryEntryResponse(
            vocabulary_id=vocabulary_id,
            translations=[DictionaryItemResponse.model_validate(item) for item in items],
        )

    async def count_by_language(self, db: AsyncSession) -> DictionaryStatsResponse:
        result = await db.execute(
            select(DictionaryItem.language, func.count())
            .group_by(DictionaryItem.language)
        )
        counts = {Language(language): count for language, count in result.all()}

        return DictionaryStatsResponse(
            total=sum(counts.values()),
            languages=[
                LanguageCount(language=lang, count=counts.get(lang, 0)) for lang in LANGUAGE_ORDER
            ],
        )
