import json
import os
from pathlib import Path
from typing import Dict, List, Tuple

# Point the application settings at SQLite before the package is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SHOW_PROGRESS", "false")

import pytest
import pytest_asyncio
from sqlalchemy import select

from genshin_dictionary.database import create_engine_for_url, create_session_factory, create_tables
from genshin_dictionary.dictionary.constants import Language
from genshin_dictionary.dictionary.exceptions import FetchError
from genshin_dictionary.dictionary.models import DictionaryItem

DATA_DIR = Path(__file__).parent / "data"


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Fresh SQLite file database with the dictionary schema"""
    engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'dictionary.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def chs_snapshot() -> Dict[int, str]:
    with open(DATA_DIR / "TextMapCHS.json", "r", encoding="utf-8") as f:
        return {int(key): value for key, value in json.load(f).items()}


async def insert_rows(session_factory, rows: List[Tuple[int, Language, str]]) -> None:
    async with session_factory() as session:
        session.add_all(
            DictionaryItem(vocabulary_id=voc_id, language=lang, vocabulary_translation=text)
            for voc_id, lang, text in rows
        )
        await session.commit()


async def read_rows(session_factory) -> List[Tuple[int, str, str]]:
    """Whole table as sorted (id, language code, translation) tuples"""
    async with session_factory() as session:
        result = await session.execute(
            select(
                DictionaryItem.vocabulary_id,
                DictionaryItem.language,
                DictionaryItem.vocabulary_translation,
            )
        )
        return sorted((voc_id, Language(lang).value, text) for voc_id, lang, text in result.all())


class FakeFetcher:
    """Serves snapshots keyed by URL; URLs listed in `failing` raise FetchError"""

    def __init__(self, snapshots: Dict[str, Dict[int, str]], failing=()):
        self.snapshots = snapshots
        self.failing = set(failing)
        self.requested: List[str] = []

    async def fetch(self, url: str) -> Dict[int, str]:
        self.requested.append(url)
        if url in self.failing:
            raise FetchError(url, "Source answered HTTP 503")
        return dict(self.snapshots.get(url, {}))
