from .builder import BuildResult, GraphBuilder, as_digraph

__all__ = ["BuildResult", "GraphBuilder", "as_digraph"]
