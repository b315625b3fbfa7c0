"""
Stage 3: Analyzer (Анализатор).

Вычисляет статистики PixelBuffer и собирает из них ImageAnalysis.

КОНТРАКТЫ:
  Выходные: ImageStatistics (все метрики валидны, не NaN/Inf)
            ImageAnalysis (confidence в (0, 1], теги непустые)

Входные данные:
- buffer: PixelBuffer (после Stage 2)

Выходные данные:
- ImageAnalysis: description, confidence, tags, metadata, statistics
"""

from typing import Optional

from loguru import logger
from pydantic import ValidationError

from ...domain.contracts import ImageAnalysis, ImageMetadata, ImageStatistics, PixelBuffer
from ...domain.exceptions import ContractValidationError
from ...domain.interfaces import IImageAnalyzer
from ..infrastructure import filters
from .classifier import ImageClassifier


class ImageAnalyzerStage(IImageAnalyzer):
    """
    Stage 3: Analyzer.

    На валидном PixelBuffer отказов не бывает; ContractValidationError
    означает баг в расчётах.
    """

    def __init__(self, classifier: Optional[ImageClassifier] = None):
        self.classifier = classifier or ImageClassifier()
        logger.debug("[Stage 3: Analyzer] Инициализирован")

    def compute_statistics(self, buffer: PixelBuffer) -> ImageStatistics:
        """
        Вычисляет статистики буфера.

        Raises:
            ContractValidationError: если расчёты привели к невалидным значениям
        """
        image = buffer.to_array()
        dominant, dominant_ratio = filters.dominant_color(image)

        try:
            stats = ImageStatistics(
                width=buffer.width,
                height=buffer.height,
                channels=buffer.channels,
                mean_brightness=filters.calculate_brightness(image),
                brightness_std=filters.calculate_contrast(image),
                channel_spread=filters.calculate_channel_spread(image),
                colorfulness=filters.calculate_colorfulness(image),
                dominant_color=dominant,
                dominant_color_ratio=dominant_ratio,
                mean_rgb=filters.calculate_mean_rgb(image),
                alpha_coverage=filters.calculate_alpha_coverage(image),
            )
        except ValidationError as e:
            raise ContractValidationError("S3", "ImageStatistics", e.errors())

        logger.debug(
            f"[Stage 3] Статистики: brightness={stats.mean_brightness:.0f}, "
            f"contrast={stats.brightness_std:.1f}, spread={stats.channel_spread:.1f}, "
            f"colorfulness={stats.colorfulness:.1f}, dominant={stats.dominant_color}"
        )
        return stats

    def analyze(
        self,
        buffer: PixelBuffer,
        original_path: Optional[str],
        hint: Optional[str] = None,
        metadata: Optional[ImageMetadata] = None
    ) -> ImageAnalysis:
        """
        Анализирует изображение.

        Args:
            buffer: Декодированный (и, возможно, обработанный) буфер
            original_path: Путь исходника для metadata
            hint: Подсказка вызывающей стороны (сохраняется в metadata)
            metadata: Metadata пайплайна (журнал операций)

        Returns:
            ImageAnalysis с валидированными полями

        Raises:
            ContractValidationError: если результат нарушает контракт
        """
        stats = self.compute_statistics(buffer)
        classification = self.classifier.classify(stats)

        if metadata is None:
            metadata = ImageMetadata(original_path=original_path, hint=hint)
        else:
            metadata = metadata.model_copy(update={"original_path": original_path, "hint": hint})

        try:
            analysis = ImageAnalysis(
                description=self.classifier.describe(stats, classification),
                confidence=self.classifier.confidence(stats),
                tags=self.classifier.tags(stats, classification),
                metadata=metadata,
                statistics=stats,
            )
        except ValidationError as e:
            raise ContractValidationError("S3", "ImageAnalysis", e.errors())

        logger.debug(
            f"[Stage 3] ✅ Анализ: '{analysis.description}', "
            f"confidence={analysis.confidence:.2f}, tags={sorted(analysis.tags)}"
        )
        return analysis
