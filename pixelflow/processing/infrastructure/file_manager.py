"""
Менеджер файлов для пайплайна обработки изображений.

Внешний коллаборатор: путь → bytes и bytes → путь.
Ядро пайплайна само на диск не ходит.
"""

from pathlib import Path
from typing import Union

from loguru import logger

from ...domain.exceptions import ImageIOError, UnreadableFileError


class ImageFileManager:
    """Чтение и запись байтов изображений."""

    def read_bytes(self, image_path: Union[str, Path]) -> bytes:
        """
        Читает файл изображения целиком.

        Args:
            image_path: Путь к файлу изображения

        Returns:
            Сырые байты файла

        Raises:
            UnreadableFileError: Если файл не существует или не читается
        """
        path = Path(image_path)
        try:
            if not path.exists() or not path.is_file():
                raise UnreadableFileError(
                    message=f"Image not found: {path}",
                    component="ImageFileManager"
                )
            with open(path, "rb") as f:
                raw_bytes = f.read()
        except OSError as e:
            raise UnreadableFileError(
                message=f"Не удалось прочитать файл: {path}",
                component="ImageFileManager",
                original_error=e
            )

        logger.debug(f"[ImageFileManager] Файл прочитан: {path.name}, {len(raw_bytes)} байт")
        return raw_bytes

    def save_bytes(self, data: bytes, file_path: Union[str, Path]) -> Path:
        """
        Сохраняет байты в файл.

        Args:
            data: Закодированное изображение
            file_path: Путь для сохранения

        Returns:
            Путь к сохраненному файлу

        Raises:
            ImageIOError: Если не удалось сохранить файл
        """
        path = Path(file_path)
        try:
            # Создаем директорию если не существует
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            raise ImageIOError(
                message=f"Не удалось сохранить файл: {path}",
                component="ImageFileManager",
                original_error=e
            )

        logger.debug(f"[ImageFileManager] Файл сохранен: {path} ({len(data)} байт)")
        return path
