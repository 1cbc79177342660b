from pydantic import Field, computed_field
from typing import Optional, List
from genshin_dictionary.models import CustomModel
from genshin_dictionary.dictionary.constants import Language


class DictionaryItemResponse(CustomModel):
    """One translation row"""
    vocabulary_id: int
    language: Language
    vocabulary_translation: str


class DictionaryEntryResponse(CustomModel):
    """All translations of one vocabulary id, in catalog order"""
    vocabulary_id: int
    translations: List[DictionaryItemResponse]


class DictionarySearchRequest(CustomModel):
    """Request schema for dictionary search"""
    query: str = Field(..., min_length=1, max_length=200, description="Text to look for")
    language: Optional[Language] = Field(None, description="Restrict the search to one language")
    limit: int = Field(20, ge=1, le=100, description="Maximum number of results")


class DictionarySearchResponse(CustomModel):
    """Response schema for dictionary search"""
    results: List[DictionaryItemResponse]
    total: int = Field(..., description="Number of matching rows")
    query: str
    limit: int


class LanguageSource(CustomModel):
    language: Language
    url: str


class LanguageCount(CustomModel):
    language: Language
    count: int


class DictionaryStatsResponse(CustomModel):
    total: int
    languages: List[LanguageCount]


class LanguageLoadResult(CustomModel):
    """Rows accepted for insertion for one language"""
    language: Language
    inserted_count: int


class RefreshReport(CustomModel):
    """Outcome of a successful refresh"""
    results: List[LanguageLoadResult] = Field(default_factory=list)
    removed_rows: int = 0
    elapsed_seconds: float = 0.0

    @computed_field  # type: ignore[misc]
    @property
    def total_inserted(self) -> int:
        return sum(result.inserted_count for result in self.results)
