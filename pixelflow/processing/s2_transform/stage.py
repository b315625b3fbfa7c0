"""
Stage 2: Transform (Движок операций).

Применяет операции к PixelBuffer строго в порядке списка.

КОНТРАКТЫ:
  Входные: PixelBuffer + последовательность ImageOperation
  Выходные: НОВЫЙ PixelBuffer + ImageMetadata с дописанным журналом

Первая же ошибка прерывает последовательность, частичный результат
отбрасывается (all-or-nothing).
"""

import time
from typing import Callable, Dict, Sequence, Tuple, Type, get_args

import cv2
import numpy as np
import numpy.typing as npt
from loguru import logger

from ...domain.contracts import (
    Blur,
    Brightness,
    Contrast,
    Crop,
    Grayscale,
    ImageMetadata,
    ImageOperation,
    PixelBuffer,
    Resize,
    Rotate,
)
from ...domain.exceptions import InvalidDimensionsError, OperationError, OutOfBoundsError
from ...domain.interfaces import IOperationEngine
from ..infrastructure import filters

_Handler = Callable[["OperationEngine", npt.NDArray[np.uint8], object], npt.NDArray[np.uint8]]


class OperationEngine(IOperationEngine):
    """
    Stage 2: Transform.

    Каждая операция - чистая функция (PixelBuffer, ImageOperation) → PixelBuffer.
    Диспетчеризация по закрытой таблице _HANDLERS, полнота проверяется
    при импорте модуля.
    """

    def __init__(self) -> None:
        logger.debug("[Stage 2: Transform] Инициализирован")

    def apply(self, buffer: PixelBuffer, operation: ImageOperation) -> PixelBuffer:
        """
        Применяет одну операцию.

        Args:
            buffer: Исходный буфер (не изменяется)
            operation: Операция

        Returns:
            Новый PixelBuffer

        Raises:
            InvalidDimensionsError: Resize с размером <= 0
            OutOfBoundsError: Crop за границами изображения
            OperationError: Прочие ошибки OpenCV
        """
        handler = _HANDLERS.get(type(operation))
        if handler is None:
            raise OperationError(
                message=f"Unknown operation: {type(operation).__name__}",
                component="OperationEngine",
                operation=operation
            )

        try:
            result = handler(self, buffer.to_array(), operation)
        except OperationError:
            raise
        except cv2.error as e:
            raise OperationError(
                message=f"OpenCV failed on {operation.kind}",
                component="OperationEngine",
                original_error=e,
                operation=operation
            )

        return PixelBuffer(result)

    def apply_all(
        self,
        buffer: PixelBuffer,
        operations: Sequence[ImageOperation],
        metadata: ImageMetadata
    ) -> Tuple[PixelBuffer, ImageMetadata]:
        """
        Применяет операции по порядку.

        Returns:
            (итоговый буфер, metadata с журналом применённых операций)

        Raises:
            OperationError: на первой неудачной операции
        """
        start_time = time.time()
        logger.debug(f"[Stage 2] Начало обработки: {len(operations)} операций")

        current = buffer
        for index, operation in enumerate(operations):
            logger.debug(
                f"[Stage 2] [{index + 1}/{len(operations)}] Применяю {operation!r} "
                f"к {current.width}x{current.height}"
            )
            current = self.apply(current, operation)
            metadata = metadata.with_operation(operation)

        elapsed_ms = (time.time() - start_time) * 1000
        logger.debug(
            f"[Stage 2] ✅ Обработка завершена: {current.width}x{current.height}, "
            f"операции={[op.kind for op in metadata.operations]}, время={elapsed_ms:.0f}ms"
        )
        return current, metadata

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _resize(self, image: npt.NDArray[np.uint8], op: Resize) -> npt.NDArray[np.uint8]:
        if op.target_width <= 0 or op.target_height <= 0:
            raise InvalidDimensionsError(
                message=f"Invalid resize dimensions: {op.target_width}x{op.target_height}",
                component="OperationEngine",
                operation=op
            )
        h, w = image.shape[:2]
        new_w, new_h = filters.compute_target_size(
            w, h, op.target_width, op.target_height, op.maintain_aspect_ratio
        )
        logger.debug(f"[Stage 2] Resize: {w}x{h} → {new_w}x{new_h}")
        return filters.resize(image, new_w, new_h)

    def _crop(self, image: npt.NDArray[np.uint8], op: Crop) -> npt.NDArray[np.uint8]:
        h, w = image.shape[:2]
        if (
            op.x < 0 or op.y < 0
            or op.width <= 0 or op.height <= 0
            or op.x + op.width > w or op.y + op.height > h
        ):
            raise OutOfBoundsError(
                message=(
                    f"Crop region ({op.x}, {op.y}, {op.width}x{op.height}) "
                    f"outside image bounds {w}x{h}"
                ),
                component="OperationEngine",
                operation=op
            )
        return filters.crop(image, op.x, op.y, op.width, op.height)

    def _rotate(self, image: npt.NDArray[np.uint8], op: Rotate) -> npt.NDArray[np.uint8]:
        return filters.rotate(image, op.degrees)

    def _blur(self, image: npt.NDArray[np.uint8], op: Blur) -> npt.NDArray[np.uint8]:
        if op.radius <= 0:
            logger.debug(f"[Stage 2] Blur radius={op.radius} <= 0, no-op")
        return filters.gaussian_blur(image, op.radius)

    def _brightness(self, image: npt.NDArray[np.uint8], op: Brightness) -> npt.NDArray[np.uint8]:
        return filters.adjust_brightness(image, op.delta)

    def _contrast(self, image: npt.NDArray[np.uint8], op: Contrast) -> npt.NDArray[np.uint8]:
        return filters.adjust_contrast(image, op.delta)

    def _grayscale(self, image: npt.NDArray[np.uint8], op: Grayscale) -> npt.NDArray[np.uint8]:
        return filters.to_grayscale(image)


_HANDLERS: Dict[Type, _Handler] = {
    Resize: OperationEngine._resize,
    Crop: OperationEngine._crop,
    Rotate: OperationEngine._rotate,
    Blur: OperationEngine._blur,
    Brightness: OperationEngine._brightness,
    Contrast: OperationEngine._contrast,
    Grayscale: OperationEngine._grayscale,
}

# ImageOperation = Annotated[Union[...], Field(...)]
_OPERATION_TYPES = get_args(get_args(ImageOperation)[0])
_missing = set(_OPERATION_TYPES) - set(_HANDLERS)
if _missing:
    raise TypeError(f"OperationEngine: нет обработчика для {sorted(t.__name__ for t in _missing)}")
