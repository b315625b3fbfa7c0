import pytest
import numpy as np
from pydantic import TypeAdapter, ValidationError

from pixelflow.domain.contracts import (
    Blur,
    Contrast,
    Crop,
    Grayscale,
    ImageAnalysis,
    ImageFormat,
    ImageMetadata,
    ImageOperation,
    PixelBuffer,
    ProcessedImage,
    Resize,
    Rotate,
)
from pixelflow.domain.result import Failure, Success
from pixelflow.domain.exceptions import ContractValidationError, OutOfBoundsError
from pixelflow.processing.s3_analyzer import ImageAnalyzerStage


# ============================================================================
# PIXEL BUFFER
# ============================================================================

def test_pixel_buffer_copies_input():
    """Тест: буфер не зависит от исходного массива."""
    array = np.zeros((4, 5, 3), dtype=np.uint8)
    buffer = PixelBuffer(array)

    array[0, 0, 0] = 255

    assert buffer.pixels[0, 0, 0] == 0


def test_pixel_buffer_is_read_only():
    """Тест: пиксели нельзя изменить на месте."""
    buffer = PixelBuffer(np.zeros((4, 5, 3), dtype=np.uint8))

    with pytest.raises(ValueError):
        buffer.pixels[0, 0, 0] = 1


def test_to_array_is_writable_copy():
    """Тест: to_array отдаёт изменяемую копию."""
    buffer = PixelBuffer(np.zeros((4, 5, 3), dtype=np.uint8))

    array = buffer.to_array()
    array[0, 0, 0] = 99

    assert buffer.pixels[0, 0, 0] == 0


def test_pixel_buffer_dimensions():
    """Тест: width/height/channels и длина данных."""
    buffer = PixelBuffer(np.zeros((4, 5, 4), dtype=np.uint8))

    assert (buffer.width, buffer.height, buffer.channels) == (5, 4, 4)
    assert buffer.has_alpha
    assert len(buffer.data) == 5 * 4 * 4


@pytest.mark.parametrize("array", [
    np.zeros((4, 5, 3), dtype=np.float32),
    np.zeros((4, 5), dtype=np.uint8),
    np.zeros((4, 5, 2), dtype=np.uint8),
    np.zeros((0, 5, 3), dtype=np.uint8),
])
def test_pixel_buffer_rejects_invalid_arrays(array):
    """Тест: неверный dtype, форма или пустой размер → ValueError."""
    with pytest.raises(ValueError):
        PixelBuffer(array)


def test_pixel_buffer_from_bytes():
    """Тест: буфер из плоских сэмплов."""
    data = bytes(range(2 * 3 * 3))

    buffer = PixelBuffer.from_bytes(2, 3, data)

    assert (buffer.width, buffer.height) == (2, 3)
    assert buffer.data == data
    assert tuple(buffer.pixels[0, 1]) == (3, 4, 5)


def test_pixel_buffer_from_bytes_wrong_length():
    """Тест: длина данных не совпадает с размерами → ValueError."""
    with pytest.raises(ValueError):
        PixelBuffer.from_bytes(2, 3, b"\x00" * 10)


def test_pixel_buffer_equality():
    """Тест: равенство по форме и сэмплам, не по объекту."""
    array = np.full((3, 3, 3), 7, dtype=np.uint8)

    assert PixelBuffer(array) == PixelBuffer(array.copy())
    assert PixelBuffer(array) != PixelBuffer(np.full((3, 3, 3), 8, dtype=np.uint8))
    assert PixelBuffer(array) != PixelBuffer(np.full((3, 3, 4), 7, dtype=np.uint8))


# ============================================================================
# IMAGE FORMAT
# ============================================================================

def test_native_encode_flags():
    """Тест: WEBP и GIF без нативного кодирования."""
    assert ImageFormat.PNG.native_encode
    assert ImageFormat.JPEG.native_encode
    assert not ImageFormat.WEBP.native_encode
    assert not ImageFormat.GIF.native_encode


@pytest.mark.parametrize("name, expected", [
    ("PNG", ImageFormat.PNG),
    ("JPEG", ImageFormat.JPEG),
    ("jpg", ImageFormat.JPEG),
    ("MPO", ImageFormat.JPEG),
    (".tif", ImageFormat.TIFF),
    ("WEBP", ImageFormat.WEBP),
    ("xyz", None),
    (None, None),
])
def test_format_from_name(name, expected):
    """Тест: имена Pillow и расширения сопоставляются с ImageFormat."""
    assert ImageFormat.from_name(name) == expected


# ============================================================================
# OPERATIONS
# ============================================================================

def test_operations_equal_by_value():
    """Тест: операции сравниваются по значениям и хешируются."""
    first = Resize(target_width=100, target_height=50)
    second = Resize(target_width=100, target_height=50)

    assert first == second
    assert hash(first) == hash(second)
    assert len({first, second, Grayscale()}) == 2
    assert first != Resize(target_width=100, target_height=50, maintain_aspect_ratio=False)


def test_operations_are_frozen():
    """Тест: операции неизменяемы."""
    operation = Crop(x=1, y=2, width=3, height=4)

    with pytest.raises(ValidationError):
        operation.x = 10


def test_resize_keeps_aspect_ratio_by_default():
    """Тест: maintain_aspect_ratio по умолчанию True."""
    assert Resize(target_width=1, target_height=1).maintain_aspect_ratio is True


def test_contrast_bounds():
    """Тест: delta контраста в [-255, 255]."""
    assert Contrast(delta=255).delta == 255
    with pytest.raises(ValidationError):
        Contrast(delta=300)
    with pytest.raises(ValidationError):
        Contrast(delta=-256)


def test_rotate_rejects_nan():
    """Тест: угол поворота должен быть конечным."""
    with pytest.raises(ValidationError):
        Rotate(degrees=float("nan"))
    with pytest.raises(ValidationError):
        Rotate(degrees=float("inf"))


def test_blur_rejects_non_finite_radius():
    """Тест: радиус размытия должен быть конечным."""
    with pytest.raises(ValidationError):
        Blur(radius=float("inf"))
    with pytest.raises(ValidationError):
        Blur(radius=float("nan"))
    assert Blur(radius=-1.0).radius == -1.0


def test_operation_union_dispatch_by_kind():
    """Тест: discriminator kind выбирает нужный вариант."""
    adapter = TypeAdapter(ImageOperation)

    operation = adapter.validate_python({"kind": "blur", "radius": 2.5})

    assert operation == Blur(radius=2.5)
    with pytest.raises(ValidationError):
        adapter.validate_python({"kind": "sharpen", "amount": 1})


# ============================================================================
# METADATA И РЕЗУЛЬТАТЫ
# ============================================================================

def test_metadata_with_operation_is_append_only():
    """Тест: with_operation возвращает новую metadata, старая не меняется."""
    empty = ImageMetadata(original_path="a.png")

    one = empty.with_operation(Grayscale())
    two = one.with_operation(Blur(radius=1))

    assert empty.operations == ()
    assert one.operations == (Grayscale(),)
    assert two.operations == (Grayscale(), Blur(radius=1))
    assert two.original_path == "a.png"


def test_metadata_used_fallback():
    """Тест: used_fallback только когда форматы различаются."""
    assert not ImageMetadata().used_fallback
    assert ImageMetadata(requested_format=ImageFormat.WEBP, encoded_format=ImageFormat.PNG).used_fallback
    assert not ImageMetadata(requested_format=ImageFormat.PNG, encoded_format=ImageFormat.PNG).used_fallback


def test_metadata_extra_is_immutable():
    """Тест: extra из dict превращается в кортеж пар, изменить его нельзя."""
    metadata = ImageMetadata(extra={"source": "camera", "iso": 200})

    assert metadata.extra == (("source", "camera"), ("iso", 200))
    assert not hasattr(metadata.extra, "__setitem__")
    with pytest.raises(ValidationError):
        metadata.extra = ()


def test_processed_image_validation():
    """Тест: нулевой размер или пустые данные → ValidationError."""
    with pytest.raises(ValidationError):
        ProcessedImage(width=0, height=10, format=ImageFormat.PNG, data=b"x", metadata=ImageMetadata())
    with pytest.raises(ValidationError):
        ProcessedImage(width=10, height=10, format=ImageFormat.PNG, data=b"", metadata=ImageMetadata())


def test_analysis_requires_tags_and_confidence():
    """Тест: пустые теги или confidence = 0 → ValidationError."""
    stats = ImageAnalyzerStage().compute_statistics(PixelBuffer(np.full((4, 4, 3), 50, dtype=np.uint8)))

    with pytest.raises(ValidationError):
        ImageAnalysis(description="x", confidence=0.5, tags=frozenset(), metadata=ImageMetadata(), statistics=stats)
    with pytest.raises(ValidationError):
        ImageAnalysis(description="x", confidence=0, tags={"a"}, metadata=ImageMetadata(), statistics=stats)


def test_contract_validation_error_message():
    """Тест: ContractValidationError перечисляет поля."""
    with pytest.raises(ValidationError) as exc_info:
        ProcessedImage(width=0, height=10, format=ImageFormat.PNG, data=b"x", metadata=ImageMetadata())

    error = ContractValidationError("S4", "ProcessedImage", exc_info.value.errors())

    assert "ProcessedImage" in str(error)
    assert "width" in str(error)
    assert error.error_code == "contract_violation"


# ============================================================================
# RESULT
# ============================================================================

def test_success_and_failure():
    """Тест: Success/Failure и unwrap."""
    success = Success(42)
    failure = Failure(error=OutOfBoundsError("outside"), stage="transforming")

    assert success.is_success and not success.is_failure
    assert success.unwrap() == 42
    assert failure.is_failure and not failure.is_success
    with pytest.raises(OutOfBoundsError):
        failure.unwrap()
