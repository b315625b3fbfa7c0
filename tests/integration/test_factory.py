import pytest

from config import settings
from pixelflow import AsyncImageProcessor, ImageFormat, ImageProcessingFactory, LocalImageProcessor
from pixelflow.processing.pipeline import ImagePipeline


def test_local_image_processor():
    """Тест: фабрика собирает LocalImageProcessor."""
    processor = ImageProcessingFactory.local_image_processor()

    assert isinstance(processor, LocalImageProcessor)
    assert isinstance(processor.pipeline, ImagePipeline)


def test_local_image_processor_validates_config(monkeypatch):
    """Тест: некорректная конфигурация не даёт создать процессор."""
    monkeypatch.setattr(settings, "JPEG_QUALITY", -5)

    with pytest.raises(ValueError, match="JPEG_QUALITY"):
        ImageProcessingFactory.local_image_processor()


def test_pipeline_shares_codec():
    """Тест: Decoder и Encoder используют один кодек."""
    pipeline = ImageProcessingFactory.create_pipeline()

    assert pipeline.decoder.codec is pipeline.encoder.codec


def test_pipeline_custom_fallback():
    """Тест: fallback формат передаётся в Encoder."""
    pipeline = ImageProcessingFactory.create_pipeline(fallback_format=ImageFormat.BMP)

    assert pipeline.encoder.fallback_format == ImageFormat.BMP


def test_create_codec_overrides():
    """Тест: параметры кодека переопределяются."""
    codec = ImageProcessingFactory.create_codec(jpeg_quality=55)

    assert codec.jpeg_quality == 55
    assert codec.png_compression == settings.PNG_COMPRESSION


def test_async_image_processor():
    """Тест: фабрика собирает AsyncImageProcessor."""
    processor = ImageProcessingFactory.async_image_processor(max_workers=2)

    try:
        assert isinstance(processor, AsyncImageProcessor)
        assert isinstance(processor.processor, LocalImageProcessor)
    finally:
        processor.shutdown()


def test_get_processing_info():
    """Тест: информация о компонентах и форматах."""
    info = ImageProcessingFactory.get_processing_info()

    assert info["domain"] == "ImageProcessing"
    assert "grayscale" in info["operations"]
    assert "webp" in info["formats"]["fallback"]
    assert info["components"]["pipeline"] == "ImagePipeline"
