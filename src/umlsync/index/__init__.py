from .store import FileIndex, IndexedFile, IndexSnapshot, IndexUpdate, content_hash

__all__ = ["FileIndex", "IndexedFile", "IndexSnapshot", "IndexUpdate", "content_hash"]
