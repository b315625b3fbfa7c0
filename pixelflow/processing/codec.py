"""
Image Codec для пайплайна обработки изображений.

Декодирование bytes → PixelBuffer и кодирование PixelBuffer → bytes.
Операция отвечает только за кодек, на диск не пишет.

OpenCV - основной декодер/энкодер, Pillow определяет формат исходника и
декодирует то, что OpenCV не смог (например GIF).
"""

import io
import threading
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional

import cv2
import numpy as np
import numpy.typing as npt
from loguru import logger
from PIL import Image as PILImage, UnidentifiedImageError

from config.settings import JPEG_QUALITY, PNG_COMPRESSION
from ..domain.contracts import ImageFormat, PixelBuffer
from ..domain.exceptions import EncodeError, UnsupportedFormatError, UnsupportedOrCorruptError
from ..domain.interfaces import IImageCodec

_registry_lock = threading.Lock()
_writable_formats: Optional[FrozenSet[ImageFormat]] = None

# Форматы без поддержки alpha в энкодере
_OPAQUE_FORMATS = frozenset({ImageFormat.JPEG, ImageFormat.BMP})


def ensure_codecs_registered() -> FrozenSet[ImageFormat]:
    """
    Однократная регистрация кодеков на процесс.

    Pillow регистрирует плагины форматов, OpenCV проверяется на наличие
    writer'ов. Результат - неизменяемый набор форматов, которые можно
    кодировать нативно.
    """
    global _writable_formats
    if _writable_formats is None:
        with _registry_lock:
            if _writable_formats is None:
                PILImage.init()
                writable = frozenset(
                    fmt for fmt in ImageFormat
                    if fmt.native_encode and cv2.haveImageWriter(f"image{fmt.extension}")
                )
                logger.info(
                    f"[ImageCodec] Кодеки зарегистрированы: OpenCV {cv2.__version__}, "
                    f"нативное кодирование: {sorted(f.value for f in writable)}"
                )
                _writable_formats = writable
    return _writable_formats


@dataclass(frozen=True)
class DecodedImage:
    """Результат декодирования."""

    buffer: PixelBuffer
    source_format: Optional[ImageFormat]  # None, если Pillow не опознал формат


class ImageCodec(IImageCodec):
    """
    Кодек изображений на OpenCV + Pillow.

    ЦКП: PixelBuffer (RGB/RGBA, uint8) из любых распознанных байтов и
    байты в запрошенном формате.
    """

    def __init__(self, jpeg_quality: int = JPEG_QUALITY, png_compression: int = PNG_COMPRESSION):
        self.jpeg_quality = jpeg_quality
        self.png_compression = png_compression
        ensure_codecs_registered()
        logger.debug(
            f"[ImageCodec] Инициализирован (jpeg_quality={jpeg_quality}, png_compression={png_compression})"
        )

    # ------------------------------------------------------------------
    # Decode
    # ------------------------------------------------------------------

    def decode(self, data: bytes) -> DecodedImage:
        """
        Декодирует байты изображения в PixelBuffer.

        Args:
            data: Сырые байты (PNG, JPEG, BMP, TIFF, WEBP, GIF, ...)

        Returns:
            DecodedImage с буфером RGB/RGBA и определённым форматом

        Raises:
            UnsupportedOrCorruptError: Если байты пустые или не распознаны
        """
        if not data:
            raise UnsupportedOrCorruptError(
                message="Empty image data",
                component="ImageCodec"
            )

        source_format = self.identify(data)
        pixels = self._decode_with_opencv(data)

        if pixels is None and source_format is not None:
            logger.debug(f"[ImageCodec] OpenCV не смог декодировать {source_format.value}, пробую Pillow")
            pixels = self._decode_with_pillow(data)

        if pixels is None:
            raise UnsupportedOrCorruptError(
                message=f"Failed to decode image ({len(data)} bytes)",
                component="ImageCodec"
            )

        buffer = PixelBuffer(pixels)
        logger.debug(
            f"[ImageCodec] Декодировано: {buffer.width}x{buffer.height}, "
            f"каналов={buffer.channels}, формат={source_format.value if source_format else 'unknown'}"
        )
        return DecodedImage(buffer=buffer, source_format=source_format)

    @staticmethod
    def identify(data: bytes) -> Optional[ImageFormat]:
        """Определяет формат по заголовку через Pillow (без полной загрузки)."""
        try:
            with PILImage.open(io.BytesIO(data)) as pil_img:
                return ImageFormat.from_name(pil_img.format)
        except (UnidentifiedImageError, OSError):
            return None

    def _decode_with_opencv(self, data: bytes) -> Optional[npt.NDArray[np.uint8]]:
        try:
            image = cv2.imdecode(np.frombuffer(data, np.uint8), cv2.IMREAD_UNCHANGED)
        except cv2.error as e:
            logger.debug(f"[ImageCodec] cv2.imdecode упал: {e}")
            return None
        if image is None:
            return None
        return self._opencv_to_rgb(image)

    @staticmethod
    def _decode_with_pillow(data: bytes) -> Optional[npt.NDArray[np.uint8]]:
        try:
            with PILImage.open(io.BytesIO(data)) as pil_img:
                has_alpha = "A" in pil_img.getbands() or "transparency" in pil_img.info
                converted = pil_img.convert("RGBA" if has_alpha else "RGB")
                return np.asarray(converted, dtype=np.uint8)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.debug(f"[ImageCodec] Pillow не смог декодировать: {e}")
            return None

    @staticmethod
    def _opencv_to_rgb(image: np.ndarray) -> npt.NDArray[np.uint8]:
        """Приводит результат cv2.imdecode к (H, W, 3|4) RGB(A) uint8."""
        if image.dtype == np.uint16:
            image = (image >> 8).astype(np.uint8)
        elif image.dtype != np.uint8:
            image = cv2.normalize(image, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)

        if image.ndim == 2:
            return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)  # type: ignore[return-value]

        channels = image.shape[2]
        if channels == 1:
            return cv2.cvtColor(np.ascontiguousarray(image[:, :, 0]), cv2.COLOR_GRAY2RGB)  # type: ignore[return-value]
        if channels == 3:
            return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)  # type: ignore[return-value]
        if channels == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)  # type: ignore[return-value]

        raise UnsupportedOrCorruptError(
            message=f"Unsupported channel count: {channels}",
            component="ImageCodec"
        )

    # ------------------------------------------------------------------
    # Encode
    # ------------------------------------------------------------------

    def supported_formats(self) -> FrozenSet[ImageFormat]:
        """Форматы, которые кодируются нативно."""
        return ensure_codecs_registered()

    def can_encode(self, image_format: ImageFormat) -> bool:
        return image_format in self.supported_formats()

    def encode(self, buffer: PixelBuffer, image_format: ImageFormat) -> bytes:
        """
        Кодирует PixelBuffer в указанный формат.

        Args:
            buffer: Буфер RGB/RGBA
            image_format: Целевой формат

        Returns:
            Закодированные байты

        Raises:
            UnsupportedFormatError: Если формат нельзя закодировать нативно
            EncodeError: Если OpenCV не смог закодировать
        """
        if not self.can_encode(image_format):
            raise UnsupportedFormatError(
                message=f"No native encoder for format: {image_format.value}",
                component="ImageCodec"
            )

        array = buffer.to_array()
        if buffer.has_alpha and image_format in _OPAQUE_FORMATS:
            logger.debug(f"[ImageCodec] {image_format.value} не поддерживает alpha, канал отброшен")
            array = np.ascontiguousarray(array[:, :, :3])

        conversion = cv2.COLOR_RGBA2BGRA if array.shape[2] == 4 else cv2.COLOR_RGB2BGR
        params = self._encode_params(image_format)

        try:
            bgr = cv2.cvtColor(array, conversion)
            success, encoded = cv2.imencode(image_format.extension, bgr, params)
        except cv2.error as e:
            raise EncodeError(
                message=f"Failed to encode image to {image_format.value}",
                component="ImageCodec",
                original_error=e
            )

        if not success or encoded is None:
            logger.error(f"[ImageCodec] Ошибка кодирования {image_format.value}")
            raise EncodeError(
                message=f"Failed to encode image to {image_format.value}",
                component="ImageCodec"
            )

        encoded_bytes = encoded.tobytes()
        logger.debug(
            f"[ImageCodec] Закодировано в {image_format.value}: {len(encoded_bytes)} байт"
        )
        return encoded_bytes

    def _encode_params(self, image_format: ImageFormat) -> List[int]:
        if image_format == ImageFormat.JPEG:
            return [int(cv2.IMWRITE_JPEG_QUALITY), self.jpeg_quality]
        if image_format == ImageFormat.PNG:
            return [int(cv2.IMWRITE_PNG_COMPRESSION), self.png_compression]
        return []

    def capabilities(self) -> Dict[str, List[str]]:
        """Какие форматы декодируются и какие кодируются нативно."""
        return {
            "decode": [fmt.value for fmt in ImageFormat],
            "encode": sorted(fmt.value for fmt in self.supported_formats()),
            "fallback": sorted(fmt.value for fmt in ImageFormat if not self.can_encode(fmt)),
        }
