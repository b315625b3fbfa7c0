"""pixelflow - обработка и анализ растровых изображений (OpenCV + numpy)."""

from .domain import (
    PixelBuffer,
    ImageFormat,
    ImageOperation,
    Resize,
    Crop,
    Rotate,
    Blur,
    Brightness,
    Contrast,
    Grayscale,
    ImageMetadata,
    ProcessedImage,
    ImageStatistics,
    ImageAnalysis,
    ImageProcessingError,
    DecodeError,
    OperationError,
    EncodeError,
    Result,
    Success,
    Failure,
)
from .application import LocalImageProcessor, AsyncImageProcessor, ImageProcessingFactory

__version__ = "0.1.0"

__all__ = [
    'PixelBuffer',
    'ImageFormat',
    'ImageOperation',
    'Resize',
    'Crop',
    'Rotate',
    'Blur',
    'Brightness',
    'Contrast',
    'Grayscale',
    'ImageMetadata',
    'ProcessedImage',
    'ImageStatistics',
    'ImageAnalysis',
    'ImageProcessingError',
    'DecodeError',
    'OperationError',
    'EncodeError',
    'Result',
    'Success',
    'Failure',
    'LocalImageProcessor',
    'AsyncImageProcessor',
    'ImageProcessingFactory',
]
