from enum import Enum
from typing import Optional

from genshin_dictionary.dictionary.constants import Language
from genshin_dictionary.exceptions import BadGatewayException, ConflictException, NotFoundException


class RefreshPhase(str, Enum):
    """Stage of a refresh run"""
    RESET = "reset"
    FETCH = "fetch"
    WRITE = "write"
    RECONCILE = "reconcile"


class DictionaryRefreshException(Exception):
    """Base exception for refresh pipeline errors"""
    def __init__(self, detail: str = "Dictionary refresh failed"):
        super().__init__(detail)
        self.detail = detail


class FetchError(DictionaryRefreshException):
    """The TextMap could not be downloaded or decoded"""
    def __init__(self, url: str, detail: str = "Could not fetch TextMap"):
        super().__init__(detail=f"{detail} ({url})")
        self.url = url


class WriteError(DictionaryRefreshException):
    """The store rejected a reset, insert or delete"""
    def __init__(self, detail: str = "Could not write to dictionary_items"):
        super().__init__(detail=detail)


class RefreshError(DictionaryRefreshException):
    """A refresh run stopped; tells which phase and language failed"""
    def __init__(
        self,
        phase: RefreshPhase,
        cause: Optional[BaseException] = None,
        language: Optional[Language] = None,
    ):
        where = phase.value if language is None else f"{phase.value} [{language.value}]"
        if cause is None:
            reason = "unknown error"
        else:
            reason = getattr(cause, "detail", None) or str(cause) or type(cause).__name__
        super().__init__(detail=f"Refresh failed during {where}: {reason}")
        self.phase = phase
        self.language = language
        self.cause = cause


class RefreshInProgressError(RefreshError):
    """Another refresh is still running on the same refresher"""
    def __init__(self):
        super().__init__(phase=RefreshPhase.RESET, cause=RuntimeError("a refresh is already running"))


class DictionaryEntryNotFoundException(NotFoundException):
    """Exception for vocabulary id not found"""
    def __init__(self, detail: str = "Dictionary entry not found"):
        super().__init__(detail=detail)


class RefreshAlreadyRunningException(ConflictException):
    def __init__(self, detail: str = "A dictionary refresh is already running"):
        super().__init__(detail=detail)


class RefreshFailedException(BadGatewayException):
    def __init__(self, detail: str = "Dictionary refresh failed"):
        super().__init__(detail=detail)
