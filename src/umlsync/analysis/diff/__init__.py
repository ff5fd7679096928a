from .engine import DiffEngine

__all__ = ["DiffEngine"]
