"""
Интерфейсы (абстрактные классы) домена обработки изображений.

Определяет контракты для всех компонентов пайплайна:
кодек → операции → анализ/кодирование.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

from .contracts import (
    ImageAnalysis,
    ImageFormat,
    ImageMetadata,
    ImageOperation,
    PixelBuffer,
    ProcessedImage,
)
from .result import Result

ImageSource = Union[str, Path, bytes]


class IImageCodec(ABC):
    """Интерфейс кодека (внешний коллаборатор: bytes ⇄ PixelBuffer)."""

    @abstractmethod
    def decode(self, data: bytes):
        """
        Декодирует байты изображения.

        Returns:
            DecodedImage (buffer + определённый формат)

        Raises:
            UnsupportedOrCorruptError: если байты не распознаны
        """
        pass

    @abstractmethod
    def encode(self, buffer: PixelBuffer, image_format: ImageFormat) -> bytes:
        """
        Кодирует буфер в указанный формат.

        Raises:
            UnsupportedFormatError: если формат нельзя закодировать нативно
            EncodeError: если кодирование не удалось
        """
        pass

    @abstractmethod
    def can_encode(self, image_format: ImageFormat) -> bool:
        """Умеет ли кодек нативно писать этот формат."""
        pass


class IOperationEngine(ABC):
    """Интерфейс движка операций (Stage 2)."""

    @abstractmethod
    def apply(self, buffer: PixelBuffer, operation: ImageOperation) -> PixelBuffer:
        """Применяет одну операцию, возвращает НОВЫЙ буфер."""
        pass

    @abstractmethod
    def apply_all(
        self,
        buffer: PixelBuffer,
        operations: Sequence[ImageOperation],
        metadata: ImageMetadata
    ) -> Tuple[PixelBuffer, ImageMetadata]:
        """Применяет операции по порядку, дописывая каждую в журнал metadata."""
        pass


class IImageAnalyzer(ABC):
    """Интерфейс анализатора (Stage 3)."""

    @abstractmethod
    def analyze(
        self,
        buffer: PixelBuffer,
        original_path: Optional[str],
        hint: Optional[str] = None,
        metadata: Optional[ImageMetadata] = None
    ) -> ImageAnalysis:
        """Вычисляет статистики и описание изображения."""
        pass


class IImageProcessor(ABC):
    """
    Публичный интерфейс процессора изображений.

    Все методы возвращают Result: Success с данными или Failure с
    типизированной ошибкой. Исключения наружу не выходят.
    """

    @abstractmethod
    def analyze_image(self, source: ImageSource, hint: Optional[str] = None) -> Result[ImageAnalysis]:
        pass

    @abstractmethod
    def resize_image(
        self,
        source: ImageSource,
        width: int,
        height: int,
        maintain_aspect_ratio: bool = True
    ) -> Result[ProcessedImage]:
        pass

    @abstractmethod
    def preprocess_image(
        self,
        source: ImageSource,
        operations: Sequence[ImageOperation]
    ) -> Result[ProcessedImage]:
        pass

    @abstractmethod
    def convert_format(self, source: ImageSource, target_format: ImageFormat) -> Result[ProcessedImage]:
        pass

    @abstractmethod
    def save_image(self, image: ProcessedImage, file_path: Union[str, Path]) -> Result[Path]:
        """Записывает закодированные байты на диск."""
        pass
