"""
Валидационные контракты (contracts) для пайплайна обработки изображений.

Каждый контракт гарантирует:
  1. Правильный тип данных (type safety)
  2. Значения в допустимых диапазонах (data integrity)
  3. Неизменяемость после создания (frozen)

PixelBuffer - dataclass поверх numpy (pydantic не умеет в ndarray),
все остальные модели используют Pydantic v2.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, FrozenSet, Literal, Mapping, Optional, Tuple, Union

import numpy as np
import numpy.typing as npt
from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================================
# PIXEL BUFFER
# ============================================================================

@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """
    Декодированный растр в памяти.

    pixels: np.ndarray формы (H, W, C), uint8, C = 3 (RGB) или 4 (RGBA).
    Массив копируется при создании и помечается read-only, поэтому
    каждая операция обязана вернуть новый PixelBuffer.
    """

    pixels: npt.NDArray[np.uint8]

    def __post_init__(self) -> None:
        pixels = np.asarray(self.pixels)
        if pixels.dtype != np.uint8:
            raise ValueError(f"PixelBuffer ожидает uint8, получено: {pixels.dtype}")
        if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
            raise ValueError(f"PixelBuffer ожидает (H, W, 3|4), получено: {pixels.shape}")
        if pixels.shape[0] <= 0 or pixels.shape[1] <= 0:
            raise ValueError(f"Размеры должны быть > 0, получено: {pixels.shape[1]}x{pixels.shape[0]}")

        frozen = np.array(pixels, dtype=np.uint8, order="C", copy=True)
        frozen.setflags(write=False)
        object.__setattr__(self, "pixels", frozen)

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes, channels: int = 3) -> "PixelBuffer":
        """Создаёт буфер из плоских row-major сэмплов."""
        expected = width * height * channels
        if len(data) != expected:
            raise ValueError(
                f"Длина данных {len(data)} != {width}x{height}x{channels} ({expected})"
            )
        array = np.frombuffer(data, dtype=np.uint8).reshape(height, width, channels)
        return cls(array)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def channels(self) -> int:
        return int(self.pixels.shape[2])

    @property
    def has_alpha(self) -> bool:
        return self.channels == 4

    @property
    def data(self) -> bytes:
        """Плоские row-major сэмплы, len == width * height * channels."""
        return self.pixels.tobytes()

    def to_array(self) -> npt.NDArray[np.uint8]:
        """Возвращает изменяемую копию пикселей (для cv2)."""
        return self.pixels.copy()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.pixels.shape == other.pixels.shape and bool(np.array_equal(self.pixels, other.pixels))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"PixelBuffer({self.width}x{self.height}, channels={self.channels})"


# ============================================================================
# IMAGE FORMAT
# ============================================================================

class ImageFormat(str, Enum):
    """Поддерживаемые форматы изображений."""
    PNG = "png"
    JPEG = "jpeg"
    BMP = "bmp"
    TIFF = "tiff"
    WEBP = "webp"       # Без нативного кодирования → fallback
    GIF = "gif"         # Без нативного кодирования → fallback

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]

    @property
    def native_encode(self) -> bool:
        return self in _NATIVE_ENCODE

    @classmethod
    def from_name(cls, name: Optional[str]) -> Optional["ImageFormat"]:
        """Сопоставляет имя формата Pillow или расширение файла с ImageFormat."""
        if not name:
            return None
        return _ALIASES.get(name.strip().lstrip(".").lower())


_EXTENSIONS = {
    ImageFormat.PNG: ".png",
    ImageFormat.JPEG: ".jpg",
    ImageFormat.BMP: ".bmp",
    ImageFormat.TIFF: ".tiff",
    ImageFormat.WEBP: ".webp",
    ImageFormat.GIF: ".gif",
}

_NATIVE_ENCODE = frozenset({ImageFormat.PNG, ImageFormat.JPEG, ImageFormat.BMP, ImageFormat.TIFF})

_ALIASES = {
    "png": ImageFormat.PNG,
    "jpeg": ImageFormat.JPEG,
    "jpg": ImageFormat.JPEG,
    "jpe": ImageFormat.JPEG,
    "mpo": ImageFormat.JPEG,    # Pillow так называет JPEG с несколькими кадрами
    "bmp": ImageFormat.BMP,
    "dib": ImageFormat.BMP,
    "tiff": ImageFormat.TIFF,
    "tif": ImageFormat.TIFF,
    "webp": ImageFormat.WEBP,
    "gif": ImageFormat.GIF,
}


# ============================================================================
# IMAGE OPERATIONS (tagged union)
# ============================================================================

class _Operation(BaseModel):
    model_config = ConfigDict(frozen=True)


class Resize(_Operation):
    """Изменение размера; при maintain_aspect_ratio точно соблюдается только одна сторона."""
    kind: Literal["resize"] = "resize"
    target_width: int
    target_height: int
    maintain_aspect_ratio: bool = True


class Crop(_Operation):
    """Вырезание прямоугольника (x, y, width, height)."""
    kind: Literal["crop"] = "crop"
    x: int
    y: int
    width: int
    height: int


class Rotate(_Operation):
    """Поворот по часовой стрелке на degrees градусов."""
    kind: Literal["rotate"] = "rotate"
    degrees: float

    @field_validator('degrees')
    @classmethod
    def finite_angle(cls, v: float) -> float:
        if math.isnan(v) or math.isinf(v):
            raise ValueError("Угол поворота должен быть конечным числом")
        return v


class Blur(_Operation):
    """Gaussian blur; radius <= 0 - no-op."""
    kind: Literal["blur"] = "blur"
    radius: float

    @field_validator('radius')
    @classmethod
    def finite_radius(cls, v: float) -> float:
        if math.isnan(v) or math.isinf(v):
            raise ValueError("Радиус размытия должен быть конечным числом")
        return v


class Brightness(_Operation):
    """Сдвиг всех цветовых сэмплов на delta."""
    kind: Literal["brightness"] = "brightness"
    delta: int


class Contrast(_Operation):
    """Линейное масштабирование вокруг середины диапазона."""
    kind: Literal["contrast"] = "contrast"
    delta: float = Field(..., ge=-255, le=255, description="Сила контраста [-255, 255]")


class Grayscale(_Operation):
    """Luminance-взвешенное обесцвечивание (alpha сохраняется)."""
    kind: Literal["grayscale"] = "grayscale"


ImageOperation = Annotated[
    Union[Resize, Crop, Rotate, Blur, Brightness, Contrast, Grayscale],
    Field(discriminator="kind"),
]


# ============================================================================
# METADATA
# ============================================================================

def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ImageMetadata(BaseModel):
    """
    Метаданные запуска пайплайна.

    operations - append-only журнал применённых операций, порядок
    совпадает с порядком применения.
    """

    model_config = ConfigDict(frozen=True)

    original_path: Optional[str] = Field(None, description="Путь к исходному файлу (None для bytes)")
    operations: Tuple[ImageOperation, ...] = Field(default=(), description="Применённые операции по порядку")
    processed_at: datetime = Field(default_factory=_utc_now, description="Время запуска")
    source_format: Optional[ImageFormat] = Field(None, description="Определённый формат исходника")
    requested_format: Optional[ImageFormat] = Field(None, description="Формат, запрошенный вызывающей стороной")
    encoded_format: Optional[ImageFormat] = Field(None, description="Формат, в котором реально закодированы байты")
    hint: Optional[str] = Field(None, description="Подсказка вызывающей стороны для анализа")
    extra: Tuple[Tuple[str, Any], ...] = Field(default=(), description="Свободные поля (пары ключ-значение)")

    @field_validator('extra', mode='before')
    @classmethod
    def freeze_extra(cls, v: Any) -> Any:
        if isinstance(v, Mapping):
            return tuple(v.items())
        return v

    def with_operation(self, operation: Any) -> "ImageMetadata":
        """Возвращает копию с операцией, добавленной в конец журнала."""
        return self.model_copy(update={"operations": self.operations + (operation,)})

    @property
    def used_fallback(self) -> bool:
        return (
            self.requested_format is not None
            and self.encoded_format is not None
            and self.requested_format != self.encoded_format
        )


# ============================================================================
# RESULTS
# ============================================================================

class ProcessedImage(BaseModel):
    """
    Результат пайплайна с кодированием.

    format - ЗАПРОШЕННЫЙ формат. При fallback байты закодированы в
    metadata.encoded_format, поэтому по format нельзя судить о кодеке.
    """

    model_config = ConfigDict(frozen=True)

    width: int = Field(..., gt=0, description="Ширина результата")
    height: int = Field(..., gt=0, description="Высота результата")
    format: ImageFormat = Field(..., description="Запрошенный формат")
    data: bytes = Field(..., min_length=1, description="Закодированные байты")
    metadata: ImageMetadata = Field(..., description="Метаданные обработки")


class ImageStatistics(BaseModel):
    """Статистики PixelBuffer. Все значения - реальные числа (не NaN/Inf)."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    channels: int = Field(..., ge=3, le=4)
    mean_brightness: float = Field(..., ge=0, le=255, description="Средняя luminance [0-255]")
    brightness_std: float = Field(..., ge=0, description="Контраст (std luminance)")
    channel_spread: float = Field(..., ge=0, description="Средний разброс между R/G/B")
    colorfulness: float = Field(..., ge=0, description="Hasler & Süsstrunk colorfulness")
    dominant_color: str = Field(..., min_length=1, description="Название доминирующей корзины")
    dominant_color_ratio: float = Field(..., gt=0, le=1, description="Доля пикселей доминирующей корзины")
    mean_rgb: Tuple[float, float, float] = Field(..., description="Средний цвет")
    alpha_coverage: float = Field(1.0, ge=0, le=1, description="Доля полностью непрозрачных пикселей")

    @field_validator('mean_brightness', 'brightness_std', 'channel_spread', 'colorfulness')
    @classmethod
    def no_special_floats(cls, v: float) -> float:
        """Не допускаются NaN или Inf значения."""
        if math.isnan(v):
            raise ValueError("Значение не может быть NaN")
        if math.isinf(v):
            raise ValueError("Значение не может быть Inf")
        return v

    @property
    def dimensions(self) -> str:
        return f"{self.width}x{self.height}"


class ImageAnalysis(BaseModel):
    """Результат анализа: описание, уверенность, теги."""

    model_config = ConfigDict(frozen=True)

    description: str = Field(..., min_length=1)
    confidence: float = Field(..., gt=0, le=1, description="Уверенность (0, 1]")
    tags: FrozenSet[str] = Field(..., min_length=1, description="Непустой набор тегов")
    metadata: ImageMetadata
    statistics: ImageStatistics
