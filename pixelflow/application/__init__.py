"""
Application: публичные процессоры и фабрика.
"""

from .local_processor import LocalImageProcessor
from .async_processor import AsyncImageProcessor
from .factory import ImageProcessingFactory

__all__ = [
    'LocalImageProcessor',
    'AsyncImageProcessor',
    'ImageProcessingFactory',
]
