"""
Tree-sitter access for TypeScript sources.

`tree_sitter.Parser` instances are not safe to share between threads, so each
worker thread lazily gets its own parser per grammar.
"""

import logging
import threading
from typing import Dict, Optional

from tree_sitter import Node, Parser
from tree_sitter_language_pack import get_parser

log = logging.getLogger(__name__)

GRAMMAR_BY_SUFFIX = {
    ".d.ts": "typescript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
}

_thread_local = threading.local()


def grammar_for(path: str) -> Optional[str]:
    lowered = path.lower()
    # Longest suffix first so `.d.ts` wins over `.ts`
    for suffix in sorted(GRAMMAR_BY_SUFFIX, key=len, reverse=True):
        if lowered.endswith(suffix):
            return GRAMMAR_BY_SUFFIX[suffix]
    return None


def parser_for(grammar: str) -> Parser:
    parsers: Optional[Dict[str, Parser]] = getattr(_thread_local, "parsers", None)
    if parsers is None:
        parsers = {}
        _thread_local.parsers = parsers

    if grammar not in parsers:
        log.debug(f"Creating {grammar} parser for thread {threading.get_ident()}")
        parsers[grammar] = get_parser(grammar)
    return parsers[grammar]


def node_text(node: Optional[Node]) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def squash(text: str) -> str:
    """Collapse runs of whitespace, so type text is layout independent."""
    return " ".join(text.split())


def first_error(node: Node) -> Optional[Node]:
    """The first ERROR or MISSING node in document order."""
    if node.type == "ERROR" or node.is_missing:
        return node
    if not node.has_error:
        return None
    for child in node.children:
        found = first_error(child)
        if found is not None:
            return found
    return None
