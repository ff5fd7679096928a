import logging
from dataclasses import dataclass, field
from typing import List, Mapping

from umlsync.analysis.diff import DiffEngine
from umlsync.analysis.graph import GraphBuilder
from umlsync.index import FileIndex, IndexSnapshot, IndexUpdate
from umlsync.spec import ChangeEvent, Diagnostic, DiagramModel, EntityGraph

from .layout import LayoutAdapter

log = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    # Graph version the run was computed against; a commit is only valid
    # while the store still holds that version.
    base_version: int
    update: IndexUpdate
    graph: EntityGraph
    events: List[ChangeEvent] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def index(self) -> IndexSnapshot:
        return self.update.snapshot


class SyncPipeline:
    """
    Parser -> GraphBuilder -> DiffEngine, as one pure computation.

    Nothing here touches committed state; the caller decides whether the
    result is still current and applies `relayout` at commit time.
    """

    def __init__(
        self,
        index: FileIndex,
        builder: GraphBuilder,
        differ: DiffEngine,
        layout: LayoutAdapter,
    ):
        self.index = index
        self.builder = builder
        self.differ = differ
        self.layout = layout

    def run(
        self,
        previous_index: IndexSnapshot,
        previous_graph: EntityGraph,
        sources: Mapping[str, str],
    ) -> PipelineResult:
        # 1. Parse changed files (in parallel)
        update = self.index.update(previous_index, sources)
        log.debug(
            f"Index update: {len(update.reparsed)} reparsed, "
            f"{len(update.reused)} reused, {len(update.removed)} removed"
        )

        # 2. Build and diff, serially
        build = self.builder.build(update.snapshot.tables(), previous_graph.version + 1)
        events = self.differ.diff(previous_graph, build.graph)

        return PipelineResult(
            base_version=previous_graph.version,
            update=update,
            graph=build.graph,
            events=events,
            diagnostics=update.snapshot.diagnostics() + build.diagnostics,
        )

    def relayout(self, model: DiagramModel, result: PipelineResult) -> DiagramModel:
        return self.layout.apply(model, result.events, result.graph)
