"""
Processing Infrastructure: фильтры, статистики и файловые операции.
"""

from . import filters
from .file_manager import ImageFileManager

__all__ = [
    'filters',
    'ImageFileManager',
]
