"""Domain exports."""

from .contracts import (
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
)
from .exceptions import (
    ImageProcessingError,
    DecodeError,
    UnreadableFileError,
    UnsupportedOrCorruptError,
    OperationError,
    InvalidDimensionsError,
    OutOfBoundsError,
    EncodeError,
    UnsupportedFormatError,
    ImageIOError,
    ContractValidationError,
    ProcessingTimeoutError,
    ProcessingCancelledError,
)
from .interfaces import (
    ImageSource,
    IImageCodec,
    IOperationEngine,
    IImageAnalyzer,
    IImageProcessor,
)
from .result import Result, Success, Failure

__all__ = [
    # Контракты
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

    # Исключения
    'ImageProcessingError',
    'DecodeError',
    'UnreadableFileError',
    'UnsupportedOrCorruptError',
    'OperationError',
    'InvalidDimensionsError',
    'OutOfBoundsError',
    'EncodeError',
    'UnsupportedFormatError',
    'ImageIOError',
    'ContractValidationError',
    'ProcessingTimeoutError',
    'ProcessingCancelledError',

    # Интерфейсы
    'ImageSource',
    'IImageCodec',
    'IOperationEngine',
    'IImageAnalyzer',
    'IImageProcessor',

    # Result
    'Result',
    'Success',
    'Failure',
]
