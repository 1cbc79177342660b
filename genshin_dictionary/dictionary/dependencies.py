from functools import lru_cache

from genshin_dictionary.config import settings
from genshin_dictionary.database import AsyncSessionLocal
from genshin_dictionary.dictionary.fetcher import TextMapFetcher
from genshin_dictionary.dictionary.refresh import DictionaryRefresher
from genshin_dictionary.dictionary.service import DictionaryService
from genshin_dictionary.dictionary.writer import BulkWriter


def get_dictionary_service() -> DictionaryService:
    """Get DictionaryService instance"""
    return DictionaryService()


@lru_cache
def get_refresher() -> DictionaryRefresher:
    """Single refresher per process so concurrent refresh requests are refused"""
    return DictionaryRefresher(
        AsyncSessionLocal,
        fetcher=TextMapFetcher(timeout=settings.FETCH_TIMEOUT_SECONDS),
        writer=BulkWriter(AsyncSessionLocal),
    )
