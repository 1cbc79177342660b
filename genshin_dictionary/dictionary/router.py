import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from genshin_dictionary.database import get_db
from genshin_dictionary.dictionary.constants import Language
from genshin_dictionary.dictionary.dependencies import get_dictionary_service, get_refresher
from genshin_dictionary.dictionary.exceptions import (
    DictionaryEntryNotFoundException,
    RefreshAlreadyRunningException,
    RefreshError,
    RefreshFailedException,
    RefreshInProgressError,
)
from genshin_dictionary.dictionary.refresh import DictionaryRefresher
from genshin_dictionary.dictionary.schemas import (
    DictionaryEntryResponse,
    DictionarySearchRequest,
    DictionarySearchResponse,
    DictionaryStatsResponse,
    LanguageSource,
    RefreshReport,
)
from genshin_dictionary.dictionary.service import DictionaryService
from genshin_dictionary.exceptions import DatabaseException

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dictionary", tags=["Dictionary"])


@router.get("/languages", response_model=List[LanguageSource])
async def list_languages(service: DictionaryService = Depends(get_dictionary_service)):
    """Supported languages in catalog order with their TextMap URL"""
    return service.list_languages()


@router.get("/search", response_model=DictionarySearchResponse)
async def search_translations(
    query: str = Query(..., min_length=1, max_length=200, description="Text to look for"),
    language: Optional[Language] = Query(None, description="Restrict to one language"),
    limit: int = Query(20, ge=1, le=100, description="Maximum number of results"),
    service: DictionaryService = Depends(get_dictionary_service),
    db: AsyncSession = Depends(get_db),
):
    """
    Search translations containing the query (case insensitive)

    - **query**: text to look for (1-200 characters)
    - **language**: optional language code
    - **limit**: maximum number of rows (1-100, default 20)
    """
    request = DictionarySearchRequest(query=query, language=language, limit=limit)
    try:
        return await service.search(db, request)
    except SQLAlchemyError as e:
        logger.error("Dictionary search failed: %s", e)
        raise DatabaseException(f"Search failed: {e}")


@router.get("/entries/{vocabulary_id}", response_model=DictionaryEntryResponse)
async def get_entry(
    vocabulary_id: int = Path(..., description="TextMap id"),
    service: DictionaryService = Depends(get_dictionary_service),
    db: AsyncSession = Depends(get_db),
):
    """All translations of one vocabulary id"""
    entry = await service.get_entry(db, vocabulary_id)
    if entry is None:
        raise DictionaryEntryNotFoundException(f"No dictionary entry with id {vocabulary_id}")
    return entry


@router.get("/stats", response_model=DictionaryStatsResponse)
async def get_stats(
    service: DictionaryService = Depends(get_dictionary_service),
    db: AsyncSession = Depends(get_db),
):
    """Row count per language"""
    return await service.count_by_language(db)


@router.post("/refresh", response_model=RefreshReport)
async def refresh_dictionary(refresher: DictionaryRefresher = Depends(get_refresher)):
    """
    Rebuild the dictionary from the remote TextMaps.

    Runs until the whole refresh is done. Answers 409 when a refresh is
    already running and 502 when one phase fails.
    """
    try:
        return await refresher.refresh()
    except RefreshInProgressError:
        raise RefreshAlreadyRunningException()
    except RefreshError as e:
        raise RefreshFailedException(e.detail)
