"""
Stage 1: Decoder (Декодер).

Отвечает за получение байтов исходника и их декодирование.
Выход: PixelBuffer (RGB/RGBA) + определённый формат + путь исходника.

Входные данные:
- source: путь (str | Path) или сырые bytes

Выходные данные:
- DecodedSource
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from loguru import logger

from ...domain.contracts import ImageFormat, PixelBuffer
from ...domain.interfaces import IImageCodec, ImageSource
from ..codec import ImageCodec
from ..infrastructure.file_manager import ImageFileManager


@dataclass(frozen=True)
class DecodedSource:
    """Декодированный исходник."""

    buffer: PixelBuffer
    source_format: Optional[ImageFormat]
    original_path: Optional[str]    # None, если исходник передан как bytes
    size_bytes: int


class ImageDecoderStage:
    """
    Stage 1: Decoder.

    Path → bytes делает ImageFileManager, bytes → PixelBuffer делает кодек.
    """

    def __init__(
        self,
        codec: Optional[IImageCodec] = None,
        file_manager: Optional[ImageFileManager] = None
    ):
        self.codec = codec or ImageCodec()
        self.file_manager = file_manager or ImageFileManager()
        logger.debug("[Stage 1: Decoder] Инициализирован")

    def decode(self, source: ImageSource) -> DecodedSource:
        """
        Декодирует исходник.

        Args:
            source: Путь к файлу или сырые байты

        Returns:
            DecodedSource

        Raises:
            UnreadableFileError: Если файл не существует или не читается
            UnsupportedOrCorruptError: Если байты не являются изображением
        """
        if isinstance(source, (bytes, bytearray, memoryview)):
            raw_bytes = bytes(source)
            original_path = None
        else:
            raw_bytes = self.file_manager.read_bytes(source)
            original_path = str(source)

        decoded = self.codec.decode(raw_bytes)

        name = Path(original_path).name if original_path else "<bytes>"
        logger.debug(
            f"[Stage 1] Декодировано: {name} → "
            f"{decoded.buffer.width}x{decoded.buffer.height}"
        )

        return DecodedSource(
            buffer=decoded.buffer,
            source_format=decoded.source_format,
            original_path=original_path,
            size_bytes=len(raw_bytes)
        )
