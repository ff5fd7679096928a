from .models import (
    DEFAULT_EXPORT,
    NAMESPACE,
    ROLE_TO_KIND,
    EntityGraph,
    FileTable,
    ImportBinding,
    Member,
    MemberKind,
    Parameter,
    ReExport,
    Reference,
    ReferenceRole,
    Relationship,
    RelationshipKind,
    Symbol,
    SymbolKind,
    Visibility,
    qualified_name,
)
from .events import (
    ChangeEvent,
    RelationshipAdded,
    RelationshipRemoved,
    SymbolAdded,
    SymbolModified,
    SymbolRemoved,
    event_sort_key,
    event_to_dict,
)
from .diagram import (
    ArrowHead,
    DiagramEdge,
    DiagramModel,
    DiagramNode,
    EdgeStyle,
    LineStyle,
    NodeDisplay,
    edge_id,
    edge_style_for,
)
from .diagnostics import Diagnostic, DiagnosticKind
from .errors import (
    ConfigError,
    ExportError,
    UmlSyncError,
    UnknownNodeError,
    UnsupportedFileError,
)
from .protocols import (
    DiagramListener,
    LanguageAdapterProtocol,
    ModuleResolverProtocol,
    ParseResult,
    SourceStoreProtocol,
)

__all__ = [
    "DEFAULT_EXPORT",
    "NAMESPACE",
    "ROLE_TO_KIND",
    "EntityGraph",
    "FileTable",
    "ImportBinding",
    "Member",
    "MemberKind",
    "Parameter",
    "ReExport",
    "Reference",
    "ReferenceRole",
    "Relationship",
    "RelationshipKind",
    "Symbol",
    "SymbolKind",
    "Visibility",
    "qualified_name",
    "ChangeEvent",
    "RelationshipAdded",
    "RelationshipRemoved",
    "SymbolAdded",
    "SymbolModified",
    "SymbolRemoved",
    "event_sort_key",
    "event_to_dict",
    "ArrowHead",
    "DiagramEdge",
    "DiagramModel",
    "DiagramNode",
    "EdgeStyle",
    "LineStyle",
    "NodeDisplay",
    "edge_id",
    "edge_style_for",
    "Diagnostic",
    "DiagnosticKind",
    "ConfigError",
    "ExportError",
    "UmlSyncError",
    "UnknownNodeError",
    "UnsupportedFileError",
    "DiagramListener",
    "LanguageAdapterProtocol",
    "ModuleResolverProtocol",
    "ParseResult",
    "SourceStoreProtocol",
]
