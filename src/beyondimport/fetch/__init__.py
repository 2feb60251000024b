"""Source fetchers and the raw-document cache."""

from .cache import DocumentCache
from .client import (
    MALFORMED,
    UNAUTHORIZED,
    UNAVAILABLE,
    DocumentFetcher,
    FetchError,
    FetchResult,
    HttpDocumentFetcher,
)
from .local import DirectoryDocumentFetcher

__all__ = [
    "MALFORMED",
    "UNAUTHORIZED",
    "UNAVAILABLE",
    "DirectoryDocumentFetcher",
    "DocumentCache",
    "DocumentFetcher",
    "FetchError",
    "FetchResult",
    "HttpDocumentFetcher",
]
