from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class DiagnosticKind(str, Enum):
    PARSE_ERROR = "parse_error"
    RESOLUTION_WARNING = "resolution_warning"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    paths: Tuple[str, ...]
    message: str
    line: Optional[int] = None
    column: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "paths": list(self.paths),
            "message": self.message,
            "line": self.line,
            "column": self.column,
        }
