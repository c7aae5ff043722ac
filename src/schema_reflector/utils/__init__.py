from .document_cache import DocumentCache

__all__ = ["DocumentCache"]
