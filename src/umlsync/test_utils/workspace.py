import json
from pathlib import Path
from textwrap import dedent
from typing import Any, Dict, List, Optional


def _toml_value(value: Any) -> str:
    # JSON scalars and flat arrays are valid TOML
    return json.dumps(value)


class WorkspaceFactory:
    """
    Builds throwaway TypeScript workspaces on disk for tests.

    Calls are chainable; nothing touches the file system until `build()`.
    """

    def __init__(self, root_path: Path):
        self.root_path = root_path
        self._files: List[Dict[str, Any]] = []
        self._config: Optional[Dict[str, Any]] = None
        self._project_name: Optional[str] = None

    def with_project_name(self, name: str) -> "WorkspaceFactory":
        self._project_name = name
        return self

    def with_config(self, config: Dict[str, Any]) -> "WorkspaceFactory":
        self._config = dict(config)
        return self

    def with_source(self, path: str, content: str) -> "WorkspaceFactory":
        self._files.append({"path": path, "content": dedent(content).strip() + "\n"})
        return self

    def with_raw_file(self, path: str, content: str) -> "WorkspaceFactory":
        self._files.append({"path": path, "content": content})
        return self

    def _render_pyproject(self) -> str:
        lines: List[str] = []
        if self._project_name:
            lines += ["[project]", f"name = {_toml_value(self._project_name)}", ""]
        if self._config is not None:
            tables: Dict[str, Dict[str, Any]] = {}
            lines.append("[tool.umlsync]")
            for key, value in self._config.items():
                if isinstance(value, dict):
                    tables[key] = value
                else:
                    lines.append(f"{key} = {_toml_value(value)}")
            for name, table in tables.items():
                lines += ["", f"[tool.umlsync.{name}]"]
                lines += [f"{k} = {_toml_value(v)}" for k, v in table.items()]
        return "\n".join(lines) + "\n"

    def build(self) -> Path:
        self.root_path.mkdir(parents=True, exist_ok=True)
        if self._config is not None or self._project_name:
            (self.root_path / "pyproject.toml").write_text(
                self._render_pyproject(), encoding="utf-8"
            )
        for file_spec in self._files:
            output_path = self.root_path / file_spec["path"]
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(file_spec["content"], encoding="utf-8")
        return self.root_path
