from pathlib import Path
from typing import Tuple

from umlsync.app import (
    FileSystemSourceStore,
    SyncService,
    WorkspaceContext,
    create_context,
)
from umlsync.config import load_config_from_path


def make_context(root_path: Path) -> WorkspaceContext:
    config = load_config_from_path(root_path)
    return create_context(config=config, root_path=root_path)


def sync_workspace(root_path: Path) -> Tuple[WorkspaceContext, SyncService]:
    """Load every source under `root_path` and commit one synchronous run."""
    context = make_context(root_path)
    service = SyncService(context, FileSystemSourceStore(root_path, context.config))
    service.load_sources()
    service.flush()
    return context, service
