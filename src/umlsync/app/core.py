import asyncio
import logging
from typing import Dict, Optional, Set

from umlsync.common import bus
from umlsync.spec import Diagnostic, DiagnosticKind, SourceStoreProtocol

from .context import WorkspaceContext
from .pipeline import PipelineResult

log = logging.getLogger(__name__)


class SyncService:
    """
    Single writer for one workspace.

    Notifications stage file contents and (re)arm a quiescence timer. When
    the timer fires, a run with a fresh generation id parses a snapshot of
    the staged contents off the event loop. If any notification arrived in
    the meantime the run is superseded: its result is dropped and another
    run follows after the next quiet period. Commits happen on the event
    loop thread only.

    Notification methods must be called from the event loop thread (or from
    synchronous code when no loop is running, followed by `flush()`).
    """

    def __init__(self, context: WorkspaceContext, source_store: SourceStoreProtocol):
        self.context = context
        self.source_store = source_store
        self._sources: Dict[str, str] = {}
        self._input_generation = 0
        self._run_generation = 0
        self.last_committed_generation = 0
        self._timer: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None
        self._reported: Set[Diagnostic] = set()

    @property
    def quiescence(self) -> float:
        return self.context.config.quiescence_ms / 1000.0

    @property
    def store(self):
        return self.context.store

    # --- SourceStore notifications ---

    def load_sources(self) -> None:
        """Stage every file the SourceStore currently lists."""
        for path in self.source_store.list_files():
            if not self._accepts(path):
                continue
            content = self.source_store.get_file_content(path)
            if content is not None:
                self._sources[path] = content
        self._touch()

    def on_file_changed(self, path: str, content: str) -> None:
        if self._accepts(path):
            self._sources[path] = content
            self._touch()

    def on_file_created(self, path: str) -> None:
        if not self._accepts(path):
            return
        content = self.source_store.get_file_content(path)
        self._sources[path] = content if content is not None else ""
        self._touch()

    def on_file_deleted(self, path: str) -> None:
        if self._sources.pop(path, None) is not None:
            self._touch()

    def on_file_moved(self, old_path: str, new_path: str) -> None:
        # Qualified names contain the path, so this is remove + add.
        content = self._sources.pop(old_path, None)
        if content is None:
            content = self.source_store.get_file_content(new_path)
        if content is not None and self._accepts(new_path):
            self._sources[new_path] = content
        self._touch()

    def _accepts(self, path: str) -> bool:
        lowered = path.lower()
        extensions = self.context.config.extensions
        in_extensions = any(lowered.endswith(ext) for ext in extensions)
        if not (in_extensions and self.context.registry.supports(path)):
            bus.debug("sync.file.unsupported", path=path)
            return False
        return True

    # --- Scheduling ---

    def _touch(self) -> None:
        self._input_generation += 1
        self._schedule()

    def _schedule(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: flush() picks the staged changes up.
            return
        if self._timer is not None:
            self._timer.cancel()
        self._timer = loop.call_later(self.quiescence, self._on_quiescent)

    def _on_quiescent(self) -> None:
        self._timer = None
        if self._task is not None and not self._task.done():
            # The in-flight run will notice it is stale and reschedule.
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(self._input_generation)
        )

    @property
    def is_idle(self) -> bool:
        return self._timer is None and (self._task is None or self._task.done())

    async def wait_idle(self, poll_interval: float = 0.01) -> None:
        """Wait until no run is pending or in flight."""
        while not self.is_idle:
            if self._task is not None and not self._task.done():
                await asyncio.wait({self._task})
            else:
                await asyncio.sleep(poll_interval)

    async def _run(self, input_generation: int) -> None:
        self._run_generation += 1
        generation = self._run_generation
        sources = dict(self._sources)
        store = self.context.store

        bus.info("sync.run.start", generation=generation, count=len(sources))
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(
                None, self.context.pipeline.run, store.index, store.graph, sources
            )
        except Exception as e:
            log.exception(f"Run {generation} failed")
            bus.error("sync.run.failed", generation=generation, error=str(e))
            if input_generation != self._input_generation:
                # Edits staged during the failed run still need a run.
                self._schedule()
            return

        stale_input = input_generation != self._input_generation
        if stale_input or result.base_version != store.version:
            log.debug(f"Run {generation} superseded, discarding its result")
            bus.debug("sync.run.superseded", generation=generation)
            self._schedule()
            return

        self._commit(result, generation)

    def flush(self) -> PipelineResult:
        """Run the pipeline synchronously on the staged contents and commit."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._run_generation += 1
        generation = self._run_generation
        store = self.context.store
        bus.info("sync.run.start", generation=generation, count=len(self._sources))
        sources = dict(self._sources)
        result = self.context.pipeline.run(store.index, store.graph, sources)
        self._commit(result, generation)
        return result

    def _commit(self, result: PipelineResult, generation: int) -> None:
        pipeline = self.context.pipeline
        self.context.store.commit(
            lambda model: pipeline.relayout(model, result),
            result.graph,
            result.index,
            result.diagnostics,
            result.events,
        )
        self.last_committed_generation = generation
        self._report(result.diagnostics)

        if result.events:
            bus.success(
                "sync.run.committed",
                generation=generation,
                version=result.graph.version,
                count=len(result.events),
            )
        else:
            bus.info("sync.run.unchanged", version=result.graph.version)

    def _report(self, diagnostics) -> None:
        current = set(diagnostics)
        for diag in diagnostics:
            if diag in self._reported:
                continue
            paths = ", ".join(diag.paths)
            if diag.kind is DiagnosticKind.PARSE_ERROR:
                bus.warning(
                    "sync.file.parse_error",
                    path=paths,
                    line=diag.line,
                    column=diag.column,
                    message=diag.message,
                )
            elif diag.kind is DiagnosticKind.CONFLICT:
                bus.warning("sync.conflict", message=diag.message, paths=paths)
            else:
                bus.warning(
                    "sync.resolution.unresolved",
                    path=paths,
                    line=diag.line,
                    message=diag.message,
                )
        # Only new diagnostics are announced; a fixed problem can be reported again.
        self._reported = current
