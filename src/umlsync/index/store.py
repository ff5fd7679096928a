import hashlib
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from umlsync.lang import LanguageRegistry
from umlsync.spec import (
    Diagnostic,
    DiagnosticKind,
    FileTable,
    ParseResult,
)

log = logging.getLogger(__name__)


def content_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class IndexedFile:
    path: str
    content_hash: str
    # The table the graph is built from: the latest parse when it was clean,
    # otherwise the last clean one (or the partial table if there never was one).
    table: FileTable
    last_good: Optional[FileTable]
    diagnostics: Tuple[Diagnostic, ...] = ()

    @property
    def is_clean(self) -> bool:
        return not self.diagnostics


@dataclass(frozen=True)
class IndexSnapshot:
    files: Dict[str, IndexedFile] = field(default_factory=dict)

    def tables(self) -> List[FileTable]:
        return [self.files[path].table for path in sorted(self.files)]

    def diagnostics(self) -> List[Diagnostic]:
        found: List[Diagnostic] = []
        for path in sorted(self.files):
            found.extend(self.files[path].diagnostics)
        return found


@dataclass
class IndexUpdate:
    snapshot: IndexSnapshot
    reparsed: List[str] = field(default_factory=list)
    reused: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)


class FileIndex:
    """
    Incremental per-file parse cache.

    `update` is a pure function of the previous snapshot and the current file
    contents: only files whose content hash changed are reparsed, and the
    previous snapshot is never mutated, so a discarded run leaves no trace.
    """

    def __init__(
        self,
        registry: LanguageRegistry,
        max_workers: Optional[int] = None,
        executor: Optional[Executor] = None,
    ):
        self.registry = registry
        self.max_workers = max_workers
        self._executor = executor
        self._owns_executor = executor is None

    def _get_executor(self) -> Executor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="umlsync-parse"
            )
        return self._executor

    def close(self) -> None:
        if self._executor is not None and self._owns_executor:
            self._executor.shutdown(wait=True)
            self._executor = None

    def update(
        self, previous: IndexSnapshot, sources: Mapping[str, str]
    ) -> IndexUpdate:
        files: Dict[str, IndexedFile] = {}
        result = IndexUpdate(snapshot=IndexSnapshot(files))
        to_parse: List[Tuple[str, str, str]] = []

        # 1. Reuse entries whose content did not change
        for path in sorted(sources):
            if not self.registry.supports(path):
                log.debug(f"Skipping unsupported file: {path}")
                continue
            content = sources[path]
            digest = content_hash(content)
            old = previous.files.get(path)
            if old is not None and old.content_hash == digest:
                files[path] = old
                result.reused.append(path)
            else:
                to_parse.append((path, content, digest))

        result.removed = sorted(
            set(previous.files) - set(files) - {path for path, _, _ in to_parse}
        )

        # 2. Parse the rest; files are independent of each other
        if len(to_parse) > 1:
            paths = [path for path, _, _ in to_parse]
            contents = [content for _, content, _ in to_parse]
            parsed = list(self._get_executor().map(self._parse_one, paths, contents))
        else:
            parsed = [self._parse_one(path, content) for path, content, _ in to_parse]

        # 3. Merge with retained tables
        for (path, _, digest), parse_result in zip(to_parse, parsed):
            files[path] = self._merge(
                previous.files.get(path), path, digest, parse_result
            )
            result.reparsed.append(path)

        return result

    def _parse_one(self, path: str, content: str) -> ParseResult:
        adapter = self.registry.adapter_for(path)
        try:
            return adapter.parse(path, content)
        except Exception as e:
            log.exception(f"Adapter failed on {path}")
            return ParseResult(
                table=FileTable(path=path, module_id=adapter.module_id_for(path)),
                diagnostics=[
                    Diagnostic(
                        DiagnosticKind.PARSE_ERROR, (path,), f"Parser failure: {e}"
                    )
                ],
            )

    def _merge(
        self,
        old: Optional[IndexedFile],
        path: str,
        digest: str,
        parse_result: ParseResult,
    ) -> IndexedFile:
        table = parse_result.table
        table.content_hash = digest

        if parse_result.is_clean:
            return IndexedFile(path, digest, table, last_good=table)

        diagnostics = tuple(parse_result.diagnostics)
        if old is not None and old.last_good is not None:
            # Keep serving the last clean version until the file parses again.
            return IndexedFile(path, digest, old.last_good, old.last_good, diagnostics)
        return IndexedFile(path, digest, table, last_good=None, diagnostics=diagnostics)
