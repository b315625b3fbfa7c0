"""
Настройки проекта pixelflow.

Все пороги и параметры кодеков собраны здесь, чтобы стадии пайплайна
не содержали "магических чисел". Часть значений можно переопределить
через переменные окружения (PIXELFLOW_*).
"""

import os

# =============================================================================
# НАСТРОЙКИ КОДЕКА
# =============================================================================
# Формат, в который кодируем, если запрошенный формат не умеем писать нативно
DEFAULT_OUTPUT_FORMAT = os.getenv("PIXELFLOW_DEFAULT_FORMAT", "png")

# Качество сжатия JPEG (0-100)
JPEG_QUALITY = int(os.getenv("PIXELFLOW_JPEG_QUALITY", "90"))

# Уровень компрессии PNG (0-9), на качество не влияет
PNG_COMPRESSION = int(os.getenv("PIXELFLOW_PNG_COMPRESSION", "3"))

# =============================================================================
# НАСТРОЙКИ ОПЕРАЦИЙ
# =============================================================================
# Середина диапазона сэмпла для Contrast
CONTRAST_MIDPOINT = 128.0

# Допуск (в градусах) при сравнении угла поворота с кратным 90
ROTATION_ANGLE_TOLERANCE = 1e-6

# =============================================================================
# НАСТРОЙКИ АНАЛИЗАТОРА
# =============================================================================
# Яркость (среднее по luminance, 0-255)
BRIGHTNESS_DARK_MAX = 85.0
BRIGHTNESS_BRIGHT_MIN = 170.0

# Контраст (std по luminance)
CONTRAST_LOW_MAX = 20.0
CONTRAST_HIGH_MIN = 70.0

# Средний разброс между R/G/B, ниже которого изображение считается серым
GRAYSCALE_CHANNEL_TOLERANCE = 3.0

# Colorfulness (Hasler & Süsstrunk), выше которого изображение "colorful"
COLORFUL_THRESHOLD = 40.0

# Доминирующий цвет: пороги HSV (OpenCV шкала: H 0-179, S/V 0-255)
DOMINANT_BLACK_VALUE_MAX = 50
DOMINANT_ACHROMATIC_SATURATION_MAX = 40
DOMINANT_WHITE_VALUE_MIN = 200

# Корзины оттенков: (название, верхняя граница hue, не включительно)
HUE_BUCKETS = (
    ("red", 10),
    ("orange", 22),
    ("yellow", 35),
    ("green", 85),
    ("cyan", 100),
    ("blue", 130),
    ("purple", 150),
    ("magenta", 170),
    ("red", 180),
)

# Confidence: минимальное значение и число пикселей для "полного сигнала"
CONFIDENCE_MIN = 0.5
CONFIDENCE_FULL_SIGNAL_PIXELS = 64 * 64

# =============================================================================
# НАСТРОЙКИ ASYNC
# =============================================================================
ASYNC_MAX_WORKERS = int(os.getenv("PIXELFLOW_ASYNC_MAX_WORKERS", "4"))


# =============================================================================
# ПРОВЕРКА КОНФИГУРАЦИИ
# =============================================================================
def validate_config():
    """Проверяет корректность конфигурации."""
    errors = []

    if DEFAULT_OUTPUT_FORMAT.lower() not in ("png", "jpeg", "jpg", "bmp", "tiff", "tif"):
        errors.append(
            f"DEFAULT_OUTPUT_FORMAT должен быть форматом с нативным кодированием, "
            f"получено: {DEFAULT_OUTPUT_FORMAT}"
        )

    if not 0 <= JPEG_QUALITY <= 100:
        errors.append(f"JPEG_QUALITY вне диапазона [0, 100]: {JPEG_QUALITY}")

    if not 0 <= PNG_COMPRESSION <= 9:
        errors.append(f"PNG_COMPRESSION вне диапазона [0, 9]: {PNG_COMPRESSION}")

    if not BRIGHTNESS_DARK_MAX < BRIGHTNESS_BRIGHT_MIN:
        errors.append("BRIGHTNESS_DARK_MAX должен быть меньше BRIGHTNESS_BRIGHT_MIN")

    if not CONTRAST_LOW_MAX < CONTRAST_HIGH_MIN:
        errors.append("CONTRAST_LOW_MAX должен быть меньше CONTRAST_HIGH_MIN")

    if not 0 < CONFIDENCE_MIN <= 1:
        errors.append(f"CONFIDENCE_MIN вне диапазона (0, 1]: {CONFIDENCE_MIN}")

    if CONFIDENCE_FULL_SIGNAL_PIXELS <= 0:
        errors.append("CONFIDENCE_FULL_SIGNAL_PIXELS должен быть > 0")

    if HUE_BUCKETS[-1][1] != 180:
        errors.append("HUE_BUCKETS должны покрывать весь диапазон hue [0, 180)")

    if ASYNC_MAX_WORKERS < 1:
        errors.append(f"ASYNC_MAX_WORKERS должен быть >= 1: {ASYNC_MAX_WORKERS}")

    if errors:
        raise ValueError("\n".join(errors))

    return True
