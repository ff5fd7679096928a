import os
from pathlib import Path
from typing import Dict, List, Optional

from umlsync.common import bus
from umlsync.config import UmlSyncConfig


class MemorySourceStore:
    """A SourceStore over a plain dict; paths are workspace-relative POSIX paths."""

    def __init__(self, files: Optional[Dict[str, str]] = None):
        self._files: Dict[str, str] = dict(files or {})

    def list_files(self) -> List[str]:
        return sorted(self._files)

    def get_file_content(self, path: str) -> Optional[str]:
        return self._files.get(path)

    def write(self, path: str, content: str) -> None:
        self._files[path] = content

    def delete(self, path: str) -> None:
        self._files.pop(path, None)

    def move(self, old_path: str, new_path: str) -> None:
        if old_path in self._files:
            self._files[new_path] = self._files.pop(old_path)


class FileSystemSourceStore:
    def __init__(self, root_path: Path, config: Optional[UmlSyncConfig] = None):
        self.root_path = root_path
        self.config = config or UmlSyncConfig()

    def _accepts(self, name: str) -> bool:
        lowered = name.lower()
        return any(lowered.endswith(ext.lower()) for ext in self.config.extensions)

    def list_files(self) -> List[str]:
        excluded = set(self.config.exclude_dirs)
        found = set()
        for scan_path_str in self.config.scan_paths:
            scan_path = self.root_path / scan_path_str
            bus.debug("debug.log.scan_path", path=scan_path_str)
            if scan_path.is_file():
                if self._accepts(scan_path.name):
                    found.add(scan_path.relative_to(self.root_path).as_posix())
                continue
            if not scan_path.is_dir():
                continue
            for dirpath, dirnames, filenames in os.walk(scan_path):
                # Prune in place so os.walk never descends into excluded dirs
                dirnames[:] = sorted(
                    d
                    for d in dirnames
                    if d not in excluded and not d.endswith(".egg-info")
                )
                for filename in filenames:
                    if self._accepts(filename):
                        full_path = Path(dirpath) / filename
                        found.add(full_path.relative_to(self.root_path).as_posix())
        return sorted(found)

    def get_file_content(self, path: str) -> Optional[str]:
        full_path = self.root_path / path
        try:
            return full_path.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            return None
