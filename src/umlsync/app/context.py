from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from umlsync.analysis.diff import DiffEngine
from umlsync.analysis.graph import GraphBuilder
from umlsync.config import UmlSyncConfig, load_config_from_path
from umlsync.index import FileIndex
from umlsync.lang import LanguageRegistry, default_registry
from umlsync.lang.typescript import TypeScriptModuleResolver

from .layout import LayoutAdapter
from .pipeline import SyncPipeline
from .store import DiagramStore


@dataclass
class WorkspaceContext:
    """
    Everything one workspace needs, owned by the hosting application.

    Several contexts can coexist in one process; no component keeps
    module-level state.
    """

    config: UmlSyncConfig
    registry: LanguageRegistry
    index: FileIndex
    builder: GraphBuilder
    differ: DiffEngine
    layout: LayoutAdapter
    pipeline: SyncPipeline
    store: DiagramStore
    root_path: Optional[Path] = None

    def close(self) -> None:
        self.index.close()


def create_context(
    config: Optional[UmlSyncConfig] = None,
    root_path: Optional[Path] = None,
    registry: Optional[LanguageRegistry] = None,
) -> WorkspaceContext:
    if config is None:
        config = load_config_from_path(root_path) if root_path else UmlSyncConfig()
    registry = registry or default_registry()

    index = FileIndex(registry, max_workers=config.max_workers)
    builder = GraphBuilder(
        TypeScriptModuleResolver(base_url=config.base_url),
        report_unresolved=config.report_unresolved,
    )
    differ = DiffEngine()
    layout = LayoutAdapter(config.layout)
    return WorkspaceContext(
        config=config,
        registry=registry,
        index=index,
        builder=builder,
        differ=differ,
        layout=layout,
        pipeline=SyncPipeline(index, builder, differ, layout),
        store=DiagramStore(),
        root_path=root_path,
    )
