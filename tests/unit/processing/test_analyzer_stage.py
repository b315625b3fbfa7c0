import pytest
import numpy as np

from pixelflow.domain.contracts import ImageMetadata, PixelBuffer, Resize
from pixelflow.processing.s3_analyzer import ImageAnalyzerStage
from pixelflow.processing.s3_analyzer.classifier import (
    BrightnessLevel,
    ColorClass,
    ContrastLevel,
    ImageClassifier,
    Orientation,
)


@pytest.fixture
def analyzer():
    """Fixture для ImageAnalyzerStage."""
    return ImageAnalyzerStage()


@pytest.fixture
def red_blue_buffer():
    """Fixture: 100x100 красный фон, синий прямоугольник в центре."""
    pixels = np.zeros((100, 100, 3), dtype=np.uint8)
    pixels[:, :] = (255, 0, 0)
    pixels[25:75, 25:75] = (0, 0, 255)
    return PixelBuffer(pixels)


def _solid(width, height, rgb):
    pixels = np.zeros((height, width, len(rgb)), dtype=np.uint8)
    pixels[:, :] = rgb
    return PixelBuffer(pixels)


def test_analyze_color_image(analyzer, red_blue_buffer):
    """Тест: анализ цветного 100x100 изображения."""
    analysis = analyzer.analyze(red_blue_buffer, "/images/test.png")

    assert "100x100" in analysis.description
    assert "color" in analysis.description
    assert analysis.confidence == pytest.approx(1.0)
    assert {"color", "square", "dominant-red", "colorful"} <= analysis.tags
    assert analysis.metadata.original_path == "/images/test.png"
    assert analysis.statistics.dominant_color == "red"
    assert analysis.statistics.dominant_color_ratio == pytest.approx(0.75)


def test_analyze_grayscale_image(analyzer):
    """Тест: серое изображение → grayscale, monochrome, low-contrast."""
    analysis = analyzer.analyze(_solid(8, 8, (128, 128, 128)), None)

    assert "grayscale" in analysis.description
    assert {"grayscale", "monochrome", "midtone", "low-contrast", "dominant-gray"} <= analysis.tags
    assert "colorful" not in analysis.tags


def test_confidence_grows_with_pixels(analyzer):
    """Тест: confidence = 0.5 + 0.5 * min(1, pixels / 4096)."""
    small = analyzer.analyze(_solid(8, 8, (10, 200, 10)), None)
    large = analyzer.analyze(_solid(64, 64, (10, 200, 10)), None)
    single = analyzer.analyze(_solid(1, 1, (10, 200, 10)), None)

    assert small.confidence == pytest.approx(0.5 + 0.5 * 64 / 4096)
    assert large.confidence == pytest.approx(1.0)
    assert 0 < single.confidence < small.confidence


def test_brightness_levels(analyzer):
    """Тест: тёмное и светлое изображения."""
    dark = analyzer.analyze(_solid(10, 10, (5, 5, 5)), None)
    bright = analyzer.analyze(_solid(10, 10, (250, 250, 250)), None)

    assert "dark" in dark.tags
    assert "dominant-black" in dark.tags
    assert "bright" in bright.tags
    assert "dominant-white" in bright.tags


def test_orientation_tags(analyzer):
    """Тест: ориентация кадра в тегах."""
    landscape = analyzer.analyze(_solid(20, 10, (0, 0, 200)), None)
    portrait = analyzer.analyze(_solid(10, 20, (0, 0, 200)), None)

    assert "landscape" in landscape.tags
    assert "portrait" in portrait.tags


def test_transparent_tag(analyzer):
    """Тест: полупрозрачные пиксели → тег transparent."""
    analysis = analyzer.analyze(_solid(10, 10, (200, 30, 30, 100)), None)

    assert "transparent" in analysis.tags
    assert analysis.statistics.alpha_coverage == pytest.approx(0.0)
    assert analysis.statistics.channels == 4


def test_hint_and_metadata_are_kept(analyzer, red_blue_buffer):
    """Тест: hint и журнал операций переносятся в metadata."""
    metadata = ImageMetadata().with_operation(Resize(target_width=100, target_height=100))

    analysis = analyzer.analyze(red_blue_buffer, "a.png", hint="product photo", metadata=metadata)

    assert analysis.metadata.hint == "product photo"
    assert analysis.metadata.original_path == "a.png"
    assert len(analysis.metadata.operations) == 1


def test_statistics_are_finite(analyzer, red_blue_buffer):
    """Тест: статистики - реальные числа."""
    stats = analyzer.compute_statistics(red_blue_buffer)

    assert stats.dimensions == "100x100"
    assert 0 <= stats.mean_brightness <= 255
    assert stats.brightness_std > 0
    assert stats.colorfulness > 0
    assert stats.mean_rgb[0] == pytest.approx(255 * 0.75)


def test_classifier_contrast_levels(analyzer):
    """Тест: чёрно-белая половинка → high-contrast."""
    pixels = np.zeros((10, 10, 3), dtype=np.uint8)
    pixels[:, 5:] = 255
    stats = analyzer.compute_statistics(PixelBuffer(pixels))

    classification = ImageClassifier().classify(stats)

    assert classification.contrast_level == ContrastLevel.HIGH
    assert classification.color_class == ColorClass.GRAYSCALE
    assert classification.brightness_level == BrightnessLevel.MIDTONE
    assert classification.orientation == Orientation.SQUARE
