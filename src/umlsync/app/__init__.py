from .context import WorkspaceContext, create_context
from .core import SyncService
from .export import DiagramExporter
from .layout import LayoutAdapter
from .pipeline import PipelineResult, SyncPipeline
from .sources import FileSystemSourceStore, MemorySourceStore
from .store import DiagramStore

__all__ = [
    "WorkspaceContext",
    "create_context",
    "SyncService",
    "DiagramExporter",
    "LayoutAdapter",
    "PipelineResult",
    "SyncPipeline",
    "FileSystemSourceStore",
    "MemorySourceStore",
    "DiagramStore",
]
