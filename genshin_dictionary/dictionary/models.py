from sqlalchemy import Column, BigInteger, Text, Enum, Index
from genshin_dictionary.database import Base
from genshin_dictionary.dictionary.constants import Language


class DictionaryItem(Base):
    """One translation of a TextMap entry.

    The table has no primary key constraint: a refresh truncates and reloads
    it, so (vocabulary_id, language) only acts as the ORM identity.
    """
    __tablename__ = "dictionary_items"

    vocabulary_id = Column(BigInteger, nullable=False)
    language = Column(
        Enum(
            Language,
            name="language",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
    )
    vocabulary_translation = Column(Text, nullable=False)

    __mapper_args__ = {"primary_key": [vocabulary_id, language]}

    __table_args__ = (
        Index("ix_dictionary_items_vocabulary_id", "vocabulary_id"),
        Index("ix_dictionary_items_language", "language"),
    )
