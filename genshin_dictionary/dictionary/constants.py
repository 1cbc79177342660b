"""
Languages shipped in the Genshin Impact TextMaps and where to download them.
"""

from enum import Enum
from typing import Dict, Tuple, Union

from genshin_dictionary.config import settings


class Language(str, Enum):
    """Stored language codes"""
    CHS = "chs"
    CHT = "cht"
    DE = "de"
    EN = "en"
    ES = "es"
    FR = "fr"
    ID = "id"
    IT = "it"
    JP = "jp"
    KR = "kr"
    PT = "pt"
    RU = "ru"
    TH = "th"
    TR = "tr"
    VI = "vi"

    def __str__(self) -> str:
        return self.value


# Catalog order. Refreshes walk languages in this order and the reconciler
# builds signatures in this order, so it decides which duplicate survives.
LANGUAGE_ORDER: Tuple[Language, ...] = (
    Language.CHS,
    Language.CHT,
    Language.DE,
    Language.EN,
    Language.ES,
    Language.FR,
    Language.ID,
    Language.IT,
    Language.JP,
    Language.KR,
    Language.PT,
    Language.RU,
    Language.TH,
    Language.TR,
    Language.VI,
)

LANGUAGE_RANK: Dict[Language, int] = {lang: rank for rank, lang in enumerate(LANGUAGE_ORDER)}


def build_textmap_url(language: Language, base_url: str) -> str:
    return f"{base_url.rstrip('/')}/TextMap{language.value.upper()}.json"


LANGUAGE_URLS: Dict[Language, str] = {
    lang: build_textmap_url(lang, settings.TEXTMAP_BASE_URL) for lang in LANGUAGE_ORDER
}


def locator_for(language: Union[Language, str]) -> str:
    """Return the TextMap URL of a language"""
    return LANGUAGE_URLS[Language(language)]
