"""
Асинхронная обёртка над процессором изображений.

Тот же синхронный пайплайн, запущенный в пуле потоков. Каждый вызов
возвращает concurrent.futures.Future[Result]; отмена одного future не
влияет на остальные (общего изменяемого состояния нет).

Дедлайн вызывающей стороны применяется только здесь, в wait().
"""

from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Any, Callable, Optional, Sequence

from loguru import logger

from config.settings import ASYNC_MAX_WORKERS
from ..domain.contracts import ImageAnalysis, ImageFormat, ImageOperation, ProcessedImage
from ..domain.exceptions import ProcessingCancelledError, ProcessingTimeoutError
from ..domain.interfaces import IImageProcessor, ImageSource
from ..domain.result import Failure, Result
from .local_processor import LocalImageProcessor


class AsyncImageProcessor:
    """
    Неблокирующие варианты публичных операций.

    Пример:
        with AsyncImageProcessor() as processor:
            future = processor.analyze_image_async("photo.png")
            result = processor.wait(future, timeout=5.0)
    """

    def __init__(
        self,
        processor: Optional[IImageProcessor] = None,
        max_workers: int = ASYNC_MAX_WORKERS
    ):
        self.processor = processor or LocalImageProcessor()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="pixelflow")
        logger.debug(f"[AsyncImageProcessor] Инициализирован (max_workers={max_workers})")

    def analyze_image_async(
        self,
        source: ImageSource,
        hint: Optional[str] = None
    ) -> "Future[Result[ImageAnalysis]]":
        return self._submit(self.processor.analyze_image, source, hint)

    def resize_image_async(
        self,
        source: ImageSource,
        width: int,
        height: int,
        maintain_aspect_ratio: bool = True
    ) -> "Future[Result[ProcessedImage]]":
        return self._submit(self.processor.resize_image, source, width, height, maintain_aspect_ratio)

    def preprocess_image_async(
        self,
        source: ImageSource,
        operations: Sequence[ImageOperation]
    ) -> "Future[Result[ProcessedImage]]":
        return self._submit(self.processor.preprocess_image, source, list(operations))

    def convert_format_async(
        self,
        source: ImageSource,
        target_format: ImageFormat
    ) -> "Future[Result[ProcessedImage]]":
        return self._submit(self.processor.convert_format, source, target_format)

    def _submit(self, fn: Callable[..., Result], *args: Any) -> Future:
        logger.debug(f"[AsyncImageProcessor] Запуск {fn.__name__}")
        return self._executor.submit(fn, *args)

    @staticmethod
    def wait(future: Future, timeout: Optional[float] = None) -> Result:
        """
        Ждёт результат с дедлайном.

        Args:
            future: Future из *_async метода
            timeout: Дедлайн в секундах (None - без ограничения)

        Returns:
            Result из пайплайна, либо Failure(ProcessingTimeoutError) по
            дедлайну, либо Failure(ProcessingCancelledError) для отменённого future
        """
        try:
            return future.result(timeout=timeout)
        except FuturesTimeoutError as e:
            future.cancel()
            logger.warning(f"[AsyncImageProcessor] Дедлайн {timeout}s превышен")
            return Failure(
                error=ProcessingTimeoutError(
                    message=f"Processing exceeded deadline of {timeout}s",
                    component="AsyncImageProcessor",
                    original_error=e
                ),
                stage="waiting"
            )
        except CancelledError as e:
            return Failure(
                error=ProcessingCancelledError(
                    message="Processing was cancelled",
                    component="AsyncImageProcessor",
                    original_error=e
                ),
                stage="waiting"
            )

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=cancel_futures)
        logger.debug("[AsyncImageProcessor] Пул потоков остановлен")

    def __enter__(self) -> "AsyncImageProcessor":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()
