"""
Image Classifier - эвристическая классификация по статистикам.

На основе измеренных статистик (яркость, контраст, разброс каналов,
colorfulness) определяет:
  - цветное или серое изображение
  - уровень яркости и контраста
  - ориентацию
и собирает из этого описание, теги и confidence.

Никакого ML: только пороги из config/settings.py.
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet

from loguru import logger

from config.settings import (
    BRIGHTNESS_DARK_MAX,
    BRIGHTNESS_BRIGHT_MIN,
    CONTRAST_LOW_MAX,
    CONTRAST_HIGH_MIN,
    GRAYSCALE_CHANNEL_TOLERANCE,
    COLORFUL_THRESHOLD,
    CONFIDENCE_MIN,
    CONFIDENCE_FULL_SIGNAL_PIXELS,
)
from ...domain.contracts import ImageStatistics


class ColorClass(str, Enum):
    """Цветовая классификация."""
    COLOR = "color"
    GRAYSCALE = "grayscale"


class BrightnessLevel(str, Enum):
    """Уровни яркости."""
    DARK = "dark"
    MIDTONE = "midtone"
    BRIGHT = "bright"


class ContrastLevel(str, Enum):
    """Уровни контраста."""
    LOW = "low-contrast"
    NORMAL = "normal-contrast"
    HIGH = "high-contrast"


class Orientation(str, Enum):
    """Ориентация кадра."""
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    SQUARE = "square"


@dataclass(frozen=True)
class ImageClassification:
    """Результат классификации."""

    color_class: ColorClass
    brightness_level: BrightnessLevel
    contrast_level: ContrastLevel
    orientation: Orientation
    colorful: bool


class ImageClassifier:
    """
    Классификатор изображения по статистикам.

    Мы не знаем, что на картинке, но ИЗМЕРЯЕМ её свойства.
    """

    def classify(self, stats: ImageStatistics) -> ImageClassification:
        """
        Классифицирует изображение.

        Args:
            stats: ImageStatistics из анализатора

        Returns:
            ImageClassification
        """
        if stats.channel_spread <= GRAYSCALE_CHANNEL_TOLERANCE:
            color_class = ColorClass.GRAYSCALE
        else:
            color_class = ColorClass.COLOR

        if stats.mean_brightness < BRIGHTNESS_DARK_MAX:
            brightness_level = BrightnessLevel.DARK
        elif stats.mean_brightness > BRIGHTNESS_BRIGHT_MIN:
            brightness_level = BrightnessLevel.BRIGHT
        else:
            brightness_level = BrightnessLevel.MIDTONE

        if stats.brightness_std < CONTRAST_LOW_MAX:
            contrast_level = ContrastLevel.LOW
        elif stats.brightness_std > CONTRAST_HIGH_MIN:
            contrast_level = ContrastLevel.HIGH
        else:
            contrast_level = ContrastLevel.NORMAL

        if stats.width > stats.height:
            orientation = Orientation.LANDSCAPE
        elif stats.width < stats.height:
            orientation = Orientation.PORTRAIT
        else:
            orientation = Orientation.SQUARE

        colorful = color_class == ColorClass.COLOR and stats.colorfulness >= COLORFUL_THRESHOLD

        classification = ImageClassification(
            color_class=color_class,
            brightness_level=brightness_level,
            contrast_level=contrast_level,
            orientation=orientation,
            colorful=colorful,
        )

        logger.debug(
            f"[ImageClassifier] {stats.dimensions}: {color_class.value}, "
            f"{brightness_level.value}, {contrast_level.value}, "
            f"colorfulness={stats.colorfulness:.1f}"
        )
        return classification

    def tags(self, stats: ImageStatistics, classification: ImageClassification) -> FrozenSet[str]:
        """Набор тегов. Никогда не пустой (ориентация и цветовой класс есть всегда)."""
        tags = {
            classification.color_class.value,
            classification.brightness_level.value,
            classification.orientation.value,
            f"dominant-{stats.dominant_color}",
        }

        if classification.color_class == ColorClass.GRAYSCALE:
            tags.add("monochrome")
        elif classification.colorful:
            tags.add("colorful")
        else:
            tags.add("muted")

        if classification.contrast_level != ContrastLevel.NORMAL:
            tags.add(classification.contrast_level.value)

        if stats.alpha_coverage < 1.0:
            tags.add("transparent")

        return frozenset(tags)

    def describe(self, stats: ImageStatistics, classification: ImageClassification) -> str:
        """Человеко-читаемое описание, всегда содержит '<w>x<h>' и цветовой класс."""
        return (
            f"{stats.dimensions} {classification.color_class.value} image, "
            f"{classification.brightness_level.value} tones "
            f"(mean brightness {stats.mean_brightness:.1f}, {classification.contrast_level.value}), "
            f"dominant color {stats.dominant_color} ({stats.dominant_color_ratio:.0%})"
        )

    def confidence(self, stats: ImageStatistics) -> float:
        """
        Confidence зависит только от объёма сигнала (числа пикселей).

        CONFIDENCE_MIN для одного пикселя, 1.0 начиная с
        CONFIDENCE_FULL_SIGNAL_PIXELS.
        """
        pixels = stats.width * stats.height
        signal = min(1.0, pixels / CONFIDENCE_FULL_SIGNAL_PIXELS)
        return CONFIDENCE_MIN + (1.0 - CONFIDENCE_MIN) * signal
