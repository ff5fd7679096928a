import io
import json
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ruamel.yaml import YAML

from umlsync.spec import Diagnostic, DiagramModel, DiagramNode, EntityGraph, ExportError

DEFAULT_PADDING = 30
MAX_PADDING = 200


@dataclass(frozen=True)
class BoundingBox:
    x: float
    y: float
    width: float
    height: float

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


def calculate_bounding_box(
    nodes: Iterable[DiagramNode], padding: float = DEFAULT_PADDING
) -> BoundingBox:
    nodes = list(nodes)
    if not nodes:
        raise ExportError("Cannot calculate bounding box: no nodes provided")
    if padding < 0 or padding > MAX_PADDING:
        raise ExportError(f"Padding must be between 0 and {MAX_PADDING} pixels")

    min_x = min(n.x for n in nodes)
    min_y = min(n.y for n in nodes)
    max_x = max(n.x + n.width for n in nodes)
    max_y = max(n.y + n.height for n in nodes)
    return BoundingBox(
        x=min_x - padding,
        y=min_y - padding,
        width=(max_x - min_x) + padding * 2,
        height=(max_y - min_y) + padding * 2,
    )


def graph_to_dict(graph: EntityGraph) -> Dict[str, Any]:
    return {
        "version": graph.version,
        "symbols": [
            {
                "key": symbol.key,
                "name": symbol.name,
                "kind": symbol.kind.value,
                "path": symbol.path,
                "exported": symbol.is_exported,
                "abstract": symbol.is_abstract,
                "conflicting": symbol.conflicting,
                "members": [m.name for m in symbol.members],
            }
            for symbol in (graph.symbols[k] for k in sorted(graph.symbols))
        ],
        "relationships": [
            {
                "source": rel.source,
                "target": rel.target,
                "kind": rel.kind.value,
                "multiplicity": rel.multiplicity,
            }
            for rel in (graph.relationships[p] for p in sorted(graph.relationships))
        ],
        "conflicts": {
            key: sorted({s.path for s in contenders})
            for key, contenders in sorted(graph.conflicts.items())
        },
    }


def suggested_file_name(
    project_name: Optional[str] = None, today: Optional[date] = None
) -> str:
    stamp = (today or date.today()).strftime("%Y%m%d")
    base_name = f"{project_name}-diagram" if project_name else "uml-diagram"
    return f"{base_name}-{stamp}"


class DiagramExporter:
    """Serializes a committed diagram to JSON or YAML snapshots."""

    FORMATS = ("json", "yaml")

    def __init__(self, padding: float = DEFAULT_PADDING):
        if padding < 0 or padding > MAX_PADDING:
            raise ExportError(f"Padding must be between 0 and {MAX_PADDING} pixels")
        self.padding = padding
        self._yaml = YAML()
        self._yaml.indent(mapping=2, sequence=4, offset=2)
        self._yaml.width = 1000  # Avoid line wrapping for readability

    def to_dict(
        self,
        model: DiagramModel,
        version: int = 0,
        diagnostics: Optional[List[Diagnostic]] = None,
    ) -> Dict[str, Any]:
        data = model.to_dict()
        bounds = (
            calculate_bounding_box(model.nodes.values(), self.padding).to_dict()
            if model.nodes
            else None
        )
        return {
            "version": version,
            "bounds": bounds,
            "nodes": data["nodes"],
            "edges": data["edges"],
            "diagnostics": [d.to_dict() for d in diagnostics or []],
        }

    def to_json(self, model: DiagramModel, **kwargs: Any) -> str:
        return json.dumps(self.to_dict(model, **kwargs), indent=2, ensure_ascii=False)

    def to_yaml(self, model: DiagramModel, **kwargs: Any) -> str:
        string_stream = io.StringIO()
        self._yaml.dump(self.to_dict(model, **kwargs), string_stream)
        return string_stream.getvalue()

    def render(self, model: DiagramModel, fmt: str, **kwargs: Any) -> str:
        if fmt == "json":
            return self.to_json(model, **kwargs)
        if fmt == "yaml":
            return self.to_yaml(model, **kwargs)
        raise ExportError(f"Unsupported export format '{fmt}'")

    def write(self, model: DiagramModel, path: Path, **kwargs: Any) -> Path:
        suffix = path.suffix.lower()
        if suffix == ".json":
            fmt = "json"
        elif suffix in (".yaml", ".yml"):
            fmt = "yaml"
        else:
            raise ExportError(f"Cannot infer export format from '{path.name}'")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.render(model, fmt, **kwargs), encoding="utf-8")
        return path
