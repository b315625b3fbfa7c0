"""
Фабрика для создания компонентов pixelflow.

Собирает кодек, стадии и процессоры через единый интерфейс, чтобы
вызывающему коду не нужно было знать о внутреннем устройстве пайплайна.
"""

from typing import Any, Dict, Optional

from loguru import logger

from config.settings import ASYNC_MAX_WORKERS, DEFAULT_OUTPUT_FORMAT, validate_config
from ..domain.contracts import ImageFormat
from ..processing.codec import ImageCodec
from ..processing.infrastructure.file_manager import ImageFileManager
from ..processing.pipeline import ImagePipeline
from ..processing.s1_decoder import ImageDecoderStage
from ..processing.s2_transform import OperationEngine
from ..processing.s3_analyzer import ImageAnalyzerStage
from ..processing.s4_encoder import ImageEncoderStage
from .async_processor import AsyncImageProcessor
from .local_processor import LocalImageProcessor


class ImageProcessingFactory:
    """
    Фабрика для создания компонентов обработки изображений.

    Отвечает за:
    - Сборку кодека и стадий пайплайна
    - Проверку конфигурации перед созданием процессора
    - Создание синхронного и асинхронного процессоров
    """

    @staticmethod
    def create_codec(jpeg_quality: Optional[int] = None, png_compression: Optional[int] = None) -> ImageCodec:
        """
        Создает кодек.

        Args:
            jpeg_quality: Качество JPEG (по умолчанию из settings)
            png_compression: Компрессия PNG (по умолчанию из settings)
        """
        logger.debug("[Factory] Создание кодека")
        kwargs = {}
        if jpeg_quality is not None:
            kwargs["jpeg_quality"] = jpeg_quality
        if png_compression is not None:
            kwargs["png_compression"] = png_compression
        return ImageCodec(**kwargs)

    @staticmethod
    def create_pipeline(
        codec: Optional[ImageCodec] = None,
        file_manager: Optional[ImageFileManager] = None,
        fallback_format: Optional[ImageFormat] = None
    ) -> ImagePipeline:
        """
        Создает пайплайн с общим кодеком для Decoder и Encoder.

        Returns:
            ImagePipeline
        """
        logger.debug("[Factory] Создание пайплайна")

        if codec is None:
            codec = ImageProcessingFactory.create_codec()

        if file_manager is None:
            file_manager = ImageFileManager()

        return ImagePipeline(
            decoder=ImageDecoderStage(codec=codec, file_manager=file_manager),
            engine=OperationEngine(),
            analyzer=ImageAnalyzerStage(),
            encoder=ImageEncoderStage(codec=codec, fallback_format=fallback_format)
        )

    @staticmethod
    def local_image_processor(pipeline: Optional[ImagePipeline] = None) -> LocalImageProcessor:
        """
        Создает локальный процессор.

        Raises:
            ValueError: если конфигурация некорректна
        """
        validate_config()
        logger.info("[Factory] Создание LocalImageProcessor")

        if pipeline is None:
            pipeline = ImageProcessingFactory.create_pipeline()

        return LocalImageProcessor(pipeline=pipeline)

    @staticmethod
    def async_image_processor(
        processor: Optional[LocalImageProcessor] = None,
        max_workers: int = ASYNC_MAX_WORKERS
    ) -> AsyncImageProcessor:
        """Создает асинхронный процессор поверх локального."""
        if processor is None:
            processor = ImageProcessingFactory.local_image_processor()

        logger.info(f"[Factory] Создание AsyncImageProcessor (max_workers={max_workers})")
        return AsyncImageProcessor(processor=processor, max_workers=max_workers)

    @staticmethod
    def get_processing_info() -> Dict[str, Any]:
        """
        Возвращает информацию о доступных компонентах и форматах.
        """
        logger.debug("[Factory] Получение информации о pixelflow")

        return {
            "domain": "ImageProcessing",
            "responsibility": "Decode, операции над пикселями, анализ, encode",
            "components": {
                "codec": "ImageCodec",
                "decoder": "ImageDecoderStage",
                "engine": "OperationEngine",
                "analyzer": "ImageAnalyzerStage",
                "encoder": "ImageEncoderStage",
                "pipeline": "ImagePipeline",
                "processor": "LocalImageProcessor",
                "async_processor": "AsyncImageProcessor"
            },
            "operations": ["resize", "crop", "rotate", "blur", "brightness", "contrast", "grayscale"],
            "formats": ImageCodec().capabilities(),
            "default_output_format": DEFAULT_OUTPUT_FORMAT,
            "dependencies": ["OpenCV", "numpy", "Pillow"]
        }
