"""
Infrastructure: Фильтры и операции обработки изображений.

Утилиты низкого уровня поверх OpenCV/numpy. Все функции принимают
np.ndarray формы (H, W, 3|4) в порядке RGB(A), uint8, и возвращают
новый массив (вход не изменяется).
"""

import math
from typing import Dict, Optional, Tuple

import cv2
import numpy as np
import numpy.typing as npt

from config.settings import (
    CONTRAST_MIDPOINT,
    ROTATION_ANGLE_TOLERANCE,
    HUE_BUCKETS,
    DOMINANT_BLACK_VALUE_MAX,
    DOMINANT_ACHROMATIC_SATURATION_MAX,
    DOMINANT_WHITE_VALUE_MIN,
)

_QUARTER_TURNS = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


def _split_alpha(image: npt.NDArray[np.uint8]) -> Tuple[npt.NDArray[np.uint8], Optional[npt.NDArray[np.uint8]]]:
    if image.shape[2] == 4:
        return image[:, :, :3], image[:, :, 3:]
    return image, None


def _merge_alpha(rgb: npt.NDArray[np.uint8], alpha: Optional[npt.NDArray[np.uint8]]) -> npt.NDArray[np.uint8]:
    if alpha is None:
        return rgb
    return np.concatenate([rgb, alpha], axis=2)


# ============================================================================
# ГЕОМЕТРИЯ
# ============================================================================

def compute_target_size(
    src_width: int,
    src_height: int,
    target_width: int,
    target_height: int,
    maintain_aspect_ratio: bool
) -> Tuple[int, int]:
    """
    Вычисляет фактический размер результата Resize.

    С сохранением пропорций используется один коэффициент
    scale = min(w / src_w, h / src_h), обе стороны округляются
    half-up и не меньше 1.
    """
    if not maintain_aspect_ratio:
        return target_width, target_height

    scale = min(target_width / src_width, target_height / src_height)
    new_w = max(1, int(math.floor(src_width * scale + 0.5)))
    new_h = max(1, int(math.floor(src_height * scale + 0.5)))
    return new_w, new_h


def resize(image: npt.NDArray[np.uint8], width: int, height: int) -> npt.NDArray[np.uint8]:
    """Resize до (width, height): INTER_AREA при уменьшении, INTER_LINEAR иначе."""
    h, w = image.shape[:2]
    if (w, h) == (width, height):
        return image.copy()
    interpolation = cv2.INTER_AREA if width * height < w * h else cv2.INTER_LINEAR
    return cv2.resize(image, (width, height), interpolation=interpolation)  # type: ignore[return-value]


def crop(image: npt.NDArray[np.uint8], x: int, y: int, width: int, height: int) -> npt.NDArray[np.uint8]:
    """Вырезает прямоугольник. Границы проверяет вызывающая сторона."""
    return image[y:y + height, x:x + width].copy()


def normalize_angle(degrees: float) -> float:
    """Приводит угол к [0, 360)."""
    angle = math.fmod(degrees, 360.0)
    if angle < 0:
        angle += 360.0
    if math.isclose(angle, 360.0, abs_tol=ROTATION_ANGLE_TOLERANCE):
        angle = 0.0
    return angle


def rotate(image: npt.NDArray[np.uint8], degrees: float) -> npt.NDArray[np.uint8]:
    """
    Поворот по часовой стрелке.

    Кратные 90 - точный поворот без интерполяции.
    Произвольный угол - билинейная интерполяция, холст расширяется до
    bounding box повёрнутого прямоугольника, пустые области заполняются
    нулями (прозрачный чёрный для RGBA).
    """
    angle = normalize_angle(degrees)
    if math.isclose(angle, 0.0, abs_tol=ROTATION_ANGLE_TOLERANCE):
        return image.copy()

    for quarter, rotate_code in _QUARTER_TURNS.items():
        if math.isclose(angle, quarter, abs_tol=ROTATION_ANGLE_TOLERANCE):
            return cv2.rotate(image, rotate_code)  # type: ignore[return-value]

    h, w = image.shape[:2]
    radians = math.radians(angle)
    cos_a = abs(math.cos(radians))
    sin_a = abs(math.sin(radians))
    new_w = max(1, int(math.ceil(w * cos_a + h * sin_a - 1e-9)))
    new_h = max(1, int(math.ceil(w * sin_a + h * cos_a - 1e-9)))

    # cv2 крутит против часовой для положительного угла
    matrix = cv2.getRotationMatrix2D((w / 2.0, h / 2.0), -angle, 1.0)
    matrix[0, 2] += new_w / 2.0 - w / 2.0
    matrix[1, 2] += new_h / 2.0 - h / 2.0

    border_value = (0, 0, 0, 0) if image.shape[2] == 4 else (0, 0, 0)
    return cv2.warpAffine(  # type: ignore[return-value]
        image,
        matrix,
        (new_w, new_h),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=border_value,
    )


# ============================================================================
# ПИКСЕЛЬНЫЕ ФИЛЬТРЫ
# ============================================================================

def blur_kernel_size(radius: float) -> int:
    """Нечётный размер ядра, растущий с радиусом."""
    return 2 * int(math.ceil(radius)) + 1


def gaussian_blur(image: npt.NDArray[np.uint8], radius: float) -> npt.NDArray[np.uint8]:
    """
    Gaussian blur.

    Args:
        image: RGB(A) изображение
        radius: Радиус (<= 0 → копия без изменений)

    Границы отражаются (BORDER_REFLECT_101), за пределы не читаем.
    """
    if radius <= 0:
        return image.copy()
    ksize = blur_kernel_size(radius)
    sigma = radius / 2.0
    return cv2.GaussianBlur(  # type: ignore[return-value]
        image, (ksize, ksize), sigmaX=sigma, sigmaY=sigma, borderType=cv2.BORDER_REFLECT_101
    )


def adjust_brightness(image: npt.NDArray[np.uint8], delta: int) -> npt.NDArray[np.uint8]:
    """Прибавляет delta к цветовым каналам с клиппингом в [0, 255]. Alpha не трогаем."""
    # |delta| > 255 всё равно насыщает канал, int32 не переполняется
    delta = max(-255, min(255, int(delta)))
    rgb, alpha = _split_alpha(image)
    shifted = np.clip(rgb.astype(np.int32) + delta, 0, 255).astype(np.uint8)
    return _merge_alpha(shifted, alpha)


def contrast_factor(delta: float) -> float:
    """factor = 259 * (delta + 255) / (255 * (259 - delta))"""
    return (259.0 * (delta + 255.0)) / (255.0 * (259.0 - delta))


def adjust_contrast(image: npt.NDArray[np.uint8], delta: float) -> npt.NDArray[np.uint8]:
    """
    Линейное масштабирование вокруг середины диапазона:
    out = factor * (v - 128) + 128, с округлением и клиппингом.
    """
    rgb, alpha = _split_alpha(image)
    factor = contrast_factor(delta)
    scaled = factor * (rgb.astype(np.float32) - CONTRAST_MIDPOINT) + CONTRAST_MIDPOINT
    result = np.clip(np.rint(scaled), 0, 255).astype(np.uint8)
    return _merge_alpha(result, alpha)


def to_grayscale(image: npt.NDArray[np.uint8]) -> npt.NDArray[np.uint8]:
    """
    Luminance (0.299R + 0.587G + 0.114B) во все три цветовых канала.

    Количество каналов сохраняется, alpha не меняется.
    """
    rgb, alpha = _split_alpha(image)
    gray = cv2.cvtColor(np.ascontiguousarray(rgb), cv2.COLOR_RGB2GRAY)
    gray_rgb = np.repeat(gray[:, :, np.newaxis], 3, axis=2)
    return _merge_alpha(gray_rgb, alpha)


# ============================================================================
# СТАТИСТИКИ
# ============================================================================

def calculate_luminance(image: npt.NDArray[np.uint8]) -> npt.NDArray[np.float64]:
    """Luminance каждого пикселя (float64, 0-255)."""
    rgb, _ = _split_alpha(image)
    weights = np.array([0.299, 0.587, 0.114], dtype=np.float64)
    return rgb.astype(np.float64) @ weights


def calculate_brightness(image: npt.NDArray[np.uint8]) -> float:
    """Средняя яркость изображения (0-255)."""
    return float(calculate_luminance(image).mean())


def calculate_contrast(image: npt.NDArray[np.uint8]) -> float:
    """Контраст изображения (стандартное отклонение luminance)."""
    return float(calculate_luminance(image).std())


def calculate_channel_spread(image: npt.NDArray[np.uint8]) -> float:
    """Средний (max - min) по R/G/B. ~0 для серых изображений."""
    rgb, _ = _split_alpha(image)
    rgb16 = rgb.astype(np.int16)
    return float((rgb16.max(axis=2) - rgb16.min(axis=2)).mean())


def calculate_colorfulness(image: npt.NDArray[np.uint8]) -> float:
    """
    Colorfulness по Hasler & Süsstrunk (2003).

    rg = R - G, yb = (R + G) / 2 - B
    C = sqrt(std_rg² + std_yb²) + 0.3 * sqrt(mean_rg² + mean_yb²)
    """
    rgb, _ = _split_alpha(image)
    r, g, b = (rgb[:, :, i].astype(np.float64) for i in range(3))
    rg = r - g
    yb = 0.5 * (r + g) - b
    std_root = math.sqrt(rg.std() ** 2 + yb.std() ** 2)
    mean_root = math.sqrt(rg.mean() ** 2 + yb.mean() ** 2)
    return float(std_root + 0.3 * mean_root)


def calculate_mean_rgb(image: npt.NDArray[np.uint8]) -> Tuple[float, float, float]:
    """Средний цвет по каналам R, G, B."""
    rgb, _ = _split_alpha(image)
    means = rgb.reshape(-1, 3).astype(np.float64).mean(axis=0)
    return float(means[0]), float(means[1]), float(means[2])


def calculate_alpha_coverage(image: npt.NDArray[np.uint8]) -> float:
    """Доля полностью непрозрачных пикселей (1.0 для RGB)."""
    _, alpha = _split_alpha(image)
    if alpha is None:
        return 1.0
    return float(np.count_nonzero(alpha == 255) / alpha.size)


def calculate_color_distribution(image: npt.NDArray[np.uint8]) -> Dict[str, float]:
    """
    Распределение пикселей по именованным цветовым корзинам (HSV).

    Тёмные пиксели (V <= порога) → black, ненасыщенные → white/gray,
    остальные раскладываются по HUE_BUCKETS.

    Returns:
        {название корзины: доля пикселей}, только непустые корзины
    """
    rgb, _ = _split_alpha(image)
    hsv = cv2.cvtColor(np.ascontiguousarray(rgb), cv2.COLOR_RGB2HSV)
    hue, saturation, value = hsv[:, :, 0], hsv[:, :, 1], hsv[:, :, 2]

    names = [name for name, _ in HUE_BUCKETS] + ["black", "white", "gray"]
    black_idx, white_idx, gray_idx = len(HUE_BUCKETS), len(HUE_BUCKETS) + 1, len(HUE_BUCKETS) + 2

    bounds = np.array([upper for _, upper in HUE_BUCKETS])
    labels = np.searchsorted(bounds, hue, side="right")

    achromatic = saturation <= DOMINANT_ACHROMATIC_SATURATION_MAX
    labels[achromatic & (value >= DOMINANT_WHITE_VALUE_MIN)] = white_idx
    labels[achromatic & (value < DOMINANT_WHITE_VALUE_MIN)] = gray_idx
    labels[value <= DOMINANT_BLACK_VALUE_MAX] = black_idx

    counts = np.bincount(labels.ravel(), minlength=len(names))
    total = float(labels.size)

    distribution: Dict[str, float] = {}
    for name, count in zip(names, counts):
        if count:
            distribution[name] = distribution.get(name, 0.0) + count / total
    return distribution


def dominant_color(image: npt.NDArray[np.uint8]) -> Tuple[str, float]:
    """Самая заполненная цветовая корзина и её доля."""
    distribution = calculate_color_distribution(image)
    name = max(distribution, key=distribution.__getitem__)
    return name, distribution[name]
