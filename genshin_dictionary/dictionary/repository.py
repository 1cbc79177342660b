import logging

from sqlalchemy import delete, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from genshin_dictionary.dictionary.exceptions import WriteError
from genshin_dictionary.dictionary.models import DictionaryItem

logger = logging.getLogger(__name__)


async def truncate_table(db: AsyncSession) -> None:
    """Remove every row of dictionary_items in one transaction"""
    try:
        if db.bind.dialect.name == "postgresql":
            await db.execute(text(f'TRUNCATE TABLE "{DictionaryItem.__tablename__}"'))
        else:
            await db.execute(delete(DictionaryItem))
        await db.commit()
    except (SQLAlchemyError, OSError) as e:
        await db.rollback()
        raise WriteError(f"Could not clear {DictionaryItem.__tablename__}: {e}") from e
    logger.info("Cleared %s", DictionaryItem.__tablename__)
