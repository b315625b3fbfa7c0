import pytest
import cv2
import numpy as np

from pixelflow.domain.contracts import Crop, Grayscale, ImageFormat, Resize
from pixelflow.domain.exceptions import (
    DecodeError,
    EncodeError,
    ImageProcessingError,
    OutOfBoundsError,
    UnreadableFileError,
)
from pixelflow.domain.interfaces import IOperationEngine
from pixelflow.domain.result import Failure, Success
from pixelflow.processing.codec import ImageCodec
from pixelflow.processing.pipeline import ImagePipeline, PipelineRun, PipelineStage
from pixelflow.processing.s4_encoder import ImageEncoderStage


@pytest.fixture
def pipeline():
    """Fixture для ImagePipeline с компонентами по умолчанию."""
    return ImagePipeline()


@pytest.fixture
def jpeg_path(tmp_path):
    """Fixture: JPEG 80x60 на диске."""
    path = tmp_path / "photo.jpg"
    cv2.imwrite(str(path), np.full((60, 80, 3), 140, dtype=np.uint8))
    return path


@pytest.fixture
def png_bytes():
    """Fixture: PNG 40x40 в памяти."""
    success, encoded = cv2.imencode(".png", np.full((40, 40, 3), 60, dtype=np.uint8))
    assert success
    return encoded.tobytes()


class _BrokenCodec(ImageCodec):
    def encode(self, buffer, image_format):
        raise EncodeError(message="broken", component="_BrokenCodec")


class _ExplodingEngine(IOperationEngine):
    def apply(self, buffer, operation):
        raise ValueError("boom")

    def apply_all(self, buffer, operations, metadata):
        raise ValueError("boom")


class _OverflowEngine(IOperationEngine):
    def apply(self, buffer, operation):
        raise OverflowError("too big")

    def apply_all(self, buffer, operations, metadata):
        raise OverflowError("too big")


# ============================================================================
# МАШИНА СОСТОЯНИЙ
# ============================================================================

def test_run_happy_path_history():
    """Тест: успешный запуск проходит все состояния по порядку."""
    run = PipelineRun("test")

    run.advance(PipelineStage.TRANSFORMING)
    run.advance(PipelineStage.ENCODING)
    run.advance(PipelineStage.DONE)

    assert run.history == [
        PipelineStage.DECODING,
        PipelineStage.TRANSFORMING,
        PipelineStage.ENCODING,
        PipelineStage.DONE,
    ]


def test_run_rejects_invalid_transition():
    """Тест: пропустить стадию нельзя."""
    run = PipelineRun("test")

    with pytest.raises(RuntimeError):
        run.advance(PipelineStage.ENCODING)


def test_run_terminal_states():
    """Тест: из FAILED переходов нет."""
    run = PipelineRun("test")
    failure = run.fail(ImageProcessingError("x"))

    assert failure.stage == "decoding"
    assert run.stage == PipelineStage.FAILED
    with pytest.raises(RuntimeError):
        run.advance(PipelineStage.TRANSFORMING)


# ============================================================================
# PROCESS
# ============================================================================

def test_process_keeps_source_format(pipeline, jpeg_path):
    """Тест: без target_format используется формат исходника."""
    result = pipeline.process(jpeg_path, [Grayscale()])

    assert isinstance(result, Success)
    image = result.value
    assert image.format == ImageFormat.JPEG
    assert image.metadata.source_format == ImageFormat.JPEG
    assert image.metadata.encoded_format == ImageFormat.JPEG
    assert image.metadata.original_path == str(jpeg_path)


def test_process_bytes_source(pipeline, png_bytes):
    """Тест: исходник bytes - original_path = None."""
    result = pipeline.process(png_bytes, [Resize(target_width=20, target_height=20)])

    assert result.is_success
    assert (result.value.width, result.value.height) == (20, 20)
    assert result.value.metadata.original_path is None


def test_process_with_target_format(pipeline, png_bytes):
    """Тест: target_format переопределяет формат исходника."""
    result = pipeline.process(png_bytes, (), target_format=ImageFormat.BMP)

    assert result.value.format == ImageFormat.BMP
    assert result.value.data.startswith(b"BM")


def test_process_missing_file_fails_in_decoding(pipeline, tmp_path):
    """Тест: отсутствующий файл → Failure на стадии decoding."""
    result = pipeline.process(tmp_path / "nope.png")

    assert isinstance(result, Failure)
    assert result.stage == PipelineStage.DECODING.value
    assert isinstance(result.error, UnreadableFileError)


def test_process_bad_operation_fails_in_transforming(pipeline, png_bytes):
    """Тест: ошибка операции → Failure на стадии transforming."""
    result = pipeline.process(png_bytes, [Crop(x=30, y=30, width=20, height=20)])

    assert result.is_failure
    assert result.stage == PipelineStage.TRANSFORMING.value
    assert isinstance(result.error, OutOfBoundsError)


def test_process_encode_error_fails_in_encoding(png_bytes):
    """Тест: ошибка кодека → Failure на стадии encoding."""
    pipeline = ImagePipeline(encoder=ImageEncoderStage(codec=_BrokenCodec()))

    result = pipeline.process(png_bytes)

    assert result.stage == PipelineStage.ENCODING.value
    assert isinstance(result.error, EncodeError)


def test_unexpected_error_is_wrapped(png_bytes):
    """Тест: ValueError внутри стадии превращается в ImageProcessingError."""
    pipeline = ImagePipeline(engine=_ExplodingEngine())

    result = pipeline.process(png_bytes, [Grayscale()])

    assert result.is_failure
    assert type(result.error) is ImageProcessingError
    assert isinstance(result.error.original_error, ValueError)


@pytest.mark.parametrize("method", ["process", "analyze"])
def test_any_stage_exception_becomes_failure(png_bytes, method):
    """Тест: OverflowError из стадии не выходит наружу, а становится Failure."""
    pipeline = ImagePipeline(engine=_OverflowEngine())

    result = getattr(pipeline, method)(png_bytes)

    assert isinstance(result, Failure)
    assert result.stage == PipelineStage.TRANSFORMING.value
    assert type(result.error) is ImageProcessingError
    assert isinstance(result.error.original_error, OverflowError)


def test_failure_unwrap_raises(pipeline, tmp_path):
    """Тест: Failure.unwrap() бросает исходную ошибку."""
    result = pipeline.process(tmp_path / "nope.png")

    with pytest.raises(DecodeError):
        result.unwrap()


# ============================================================================
# ANALYZE
# ============================================================================

def test_analyze_with_operations(pipeline, png_bytes):
    """Тест: анализ после операций видит итоговый размер."""
    result = pipeline.analyze(png_bytes, hint="thumb", operations=[Resize(target_width=10, target_height=10)])

    assert result.is_success
    assert "10x10" in result.value.description
    assert result.value.metadata.hint == "thumb"
    assert len(result.value.metadata.operations) == 1


def test_analyze_garbage_fails_in_decoding(pipeline):
    """Тест: не-изображение → DecodeError на стадии decoding."""
    result = pipeline.analyze(b"definitely not an image")

    assert result.is_failure
    assert result.stage == "decoding"
    assert isinstance(result.error, DecodeError)
