"""
Stage 4: Encoder (Кодировщик).

Кодирует итоговый PixelBuffer в запрошенный формат.

Если у формата нет нативного энкодера (WEBP, GIF), кодируем в
DEFAULT_OUTPUT_FORMAT, а запрошенный формат сохраняем в результате.
Это известное поведение совместимости, а не ошибка.

Входные данные:
- buffer: PixelBuffer
- requested_format: ImageFormat

Выходные данные:
- EncodedImage (bytes + запрошенный и фактический форматы)
"""

from dataclasses import dataclass
from typing import Optional

from loguru import logger

from config.settings import DEFAULT_OUTPUT_FORMAT
from ...domain.contracts import ImageFormat, PixelBuffer
from ...domain.exceptions import UnsupportedFormatError
from ...domain.interfaces import IImageCodec
from ..codec import ImageCodec


@dataclass(frozen=True)
class EncodedImage:
    """Результат кодирования."""

    data: bytes
    requested_format: ImageFormat
    encoded_format: ImageFormat

    @property
    def used_fallback(self) -> bool:
        return self.requested_format != self.encoded_format


class ImageEncoderStage:
    """
    Stage 4: Encoder.

    UnsupportedFormatError от кодека перехватывается и превращается в
    fallback, наружу уходят только настоящие EncodeError.
    """

    def __init__(
        self,
        codec: Optional[IImageCodec] = None,
        fallback_format: Optional[ImageFormat] = None
    ):
        self.codec = codec or ImageCodec()
        self.fallback_format = fallback_format or ImageFormat.from_name(DEFAULT_OUTPUT_FORMAT) or ImageFormat.PNG
        logger.debug(f"[Stage 4: Encoder] Инициализирован (fallback={self.fallback_format.value})")

    def encode(self, buffer: PixelBuffer, requested_format: ImageFormat) -> EncodedImage:
        """
        Кодирует буфер.

        Args:
            buffer: Итоговый буфер
            requested_format: Формат, запрошенный вызывающей стороной

        Returns:
            EncodedImage

        Raises:
            EncodeError: если не удалось закодировать даже в fallback формат
        """
        try:
            data = self.codec.encode(buffer, requested_format)
            encoded_format = requested_format
        except UnsupportedFormatError:
            logger.warning(
                f"[Stage 4] Нет нативного энкодера для {requested_format.value}, "
                f"кодирую в {self.fallback_format.value} (формат результата остаётся {requested_format.value})"
            )
            data = self.codec.encode(buffer, self.fallback_format)
            encoded_format = self.fallback_format

        logger.debug(
            f"[Stage 4] ✅ Закодировано: {buffer.width}x{buffer.height} → "
            f"{len(data)} байт ({encoded_format.value})"
        )
        return EncodedImage(data=data, requested_format=requested_format, encoded_format=encoded_format)
