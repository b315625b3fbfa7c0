"""Stage 2: Transform."""

from .stage import OperationEngine

__all__ = ['OperationEngine']
