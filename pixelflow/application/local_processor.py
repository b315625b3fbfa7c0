"""
Локальный процессор изображений.

Публичная граница библиотеки: все методы возвращают Result и не
пробрасывают исключения наружу.
"""

from pathlib import Path
from typing import Optional, Sequence, Union

from loguru import logger

from ..domain.contracts import (
    ImageAnalysis,
    ImageFormat,
    ImageOperation,
    ProcessedImage,
    Resize,
)
from ..domain.exceptions import ImageProcessingError
from ..domain.interfaces import IImageProcessor, ImageSource
from ..domain.result import Failure, Result, Success
from ..processing.infrastructure.file_manager import ImageFileManager
from ..processing.pipeline import ImagePipeline


class LocalImageProcessor(IImageProcessor):
    """
    Процессор изображений, работающий целиком в процессе (OpenCV + numpy).

    Каждый вызов независим: новый запуск пайплайна, новые буферы.
    """

    def __init__(
        self,
        pipeline: Optional[ImagePipeline] = None,
        file_manager: Optional[ImageFileManager] = None
    ):
        self.pipeline = pipeline or ImagePipeline()
        self.file_manager = file_manager or ImageFileManager()
        logger.debug("[LocalImageProcessor] Инициализирован")

    def analyze_image(self, source: ImageSource, hint: Optional[str] = None) -> Result[ImageAnalysis]:
        """
        Анализирует изображение.

        Args:
            source: Путь к файлу или сырые байты
            hint: Необязательная подсказка (сохраняется в metadata)

        Returns:
            Success(ImageAnalysis) или Failure(DecodeError, ...)
        """
        return self.pipeline.analyze(source, hint=hint)

    def resize_image(
        self,
        source: ImageSource,
        width: int,
        height: int,
        maintain_aspect_ratio: bool = True
    ) -> Result[ProcessedImage]:
        """
        Изменяет размер изображения.

        Формат результата совпадает с форматом исходника.
        """
        operation = Resize(
            target_width=width,
            target_height=height,
            maintain_aspect_ratio=maintain_aspect_ratio
        )
        return self.pipeline.process(source, [operation])

    def preprocess_image(
        self,
        source: ImageSource,
        operations: Sequence[ImageOperation]
    ) -> Result[ProcessedImage]:
        """
        Применяет операции по порядку (all-or-nothing).
        """
        return self.pipeline.process(source, list(operations))

    def convert_format(self, source: ImageSource, target_format: ImageFormat) -> Result[ProcessedImage]:
        """
        Перекодирует изображение в target_format.

        Для форматов без нативного энкодера результат всё равно успешный:
        format == target_format, а байты закодированы в fallback формат
        (см. metadata.encoded_format).
        """
        return self.pipeline.process(source, (), target_format=target_format)

    def save_image(self, image: ProcessedImage, file_path: Union[str, Path]) -> Result[Path]:
        """
        Сохраняет закодированные байты на диск.

        Returns:
            Success(путь) или Failure(ImageIOError)
        """
        if image.metadata.used_fallback:
            logger.warning(
                f"[LocalImageProcessor] Байты закодированы как {image.metadata.encoded_format.value}, "
                f"а не {image.format.value}: {file_path}"
            )
        try:
            return Success(self.file_manager.save_bytes(image.data, file_path))
        except ImageProcessingError as e:
            logger.error(f"[LocalImageProcessor] ❌ Не удалось сохранить {file_path}: {e}")
            return Failure(error=e, stage="saving")
