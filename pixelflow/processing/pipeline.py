"""
Pipeline обработки изображений (оркестратор).

Машина состояний на каждый запрос:

    DECODING → TRANSFORMING → (ENCODING | ANALYZING) → DONE
         └──────────┴──────────────┴─────────→ FAILED(error)

Стадии:
1. Decoder: source (path | bytes) → PixelBuffer
2. Transform: операции по порядку, журнал в ImageMetadata
3. Analyzer: PixelBuffer → ImageAnalysis
4. Encoder: PixelBuffer → bytes (с fallback формата)

Стадии бросают ImageProcessingError, пайплайн возвращает первую ошибку
как Failure. Любое другое исключение оборачивается в ImageProcessingError.
Частичные результаты не возвращаются, состояния между вызовами нет.
"""

from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set

from loguru import logger
from pydantic import ValidationError

from ..domain.contracts import (
    ImageAnalysis,
    ImageFormat,
    ImageMetadata,
    ImageOperation,
    ProcessedImage,
)
from ..domain.exceptions import ContractValidationError, ImageProcessingError
from ..domain.interfaces import IImageAnalyzer, IOperationEngine, ImageSource
from ..domain.result import Failure, Result, Success
from .s1_decoder import ImageDecoderStage
from .s2_transform import OperationEngine
from .s3_analyzer import ImageAnalyzerStage
from .s4_encoder import ImageEncoderStage


class PipelineStage(str, Enum):
    """Состояния запуска пайплайна."""
    DECODING = "decoding"
    TRANSFORMING = "transforming"
    ENCODING = "encoding"
    ANALYZING = "analyzing"
    DONE = "done"
    FAILED = "failed"


_TRANSITIONS: Dict[PipelineStage, Set[PipelineStage]] = {
    PipelineStage.DECODING: {PipelineStage.TRANSFORMING, PipelineStage.FAILED},
    PipelineStage.TRANSFORMING: {PipelineStage.ENCODING, PipelineStage.ANALYZING, PipelineStage.FAILED},
    PipelineStage.ENCODING: {PipelineStage.DONE, PipelineStage.FAILED},
    PipelineStage.ANALYZING: {PipelineStage.DONE, PipelineStage.FAILED},
    PipelineStage.DONE: set(),
    PipelineStage.FAILED: set(),
}


class PipelineRun:
    """Состояние одного запроса. Терминальные состояния: DONE, FAILED."""

    def __init__(self, name: str):
        self.name = name
        self.stage = PipelineStage.DECODING
        self.history: List[PipelineStage] = [PipelineStage.DECODING]

    def advance(self, stage: PipelineStage) -> None:
        if stage not in _TRANSITIONS[self.stage]:
            raise RuntimeError(f"Недопустимый переход {self.stage.value} → {stage.value}")
        logger.debug(f"[ImagePipeline] {self.name}: {self.stage.value} → {stage.value}")
        self.stage = stage
        self.history.append(stage)

    def fail(self, error: ImageProcessingError) -> Failure:
        failed_stage = self.stage
        self.advance(PipelineStage.FAILED)
        logger.error(f"[ImagePipeline] ❌ {self.name}: ошибка на стадии {failed_stage.value}: {error}")
        return Failure(error=error, stage=failed_stage.value)


class ImagePipeline:
    """
    Пайплайн обработки изображений (4 Stages).

    Stages:
    1. Decoder: Load + Decode
    2. Transform: Apply Operations
    3. Analyzer: Statistics + Description
    4. Encoder: Encode to Bytes (с fallback)
    """

    def __init__(
        self,
        decoder: Optional[ImageDecoderStage] = None,
        engine: Optional[IOperationEngine] = None,
        analyzer: Optional[IImageAnalyzer] = None,
        encoder: Optional[ImageEncoderStage] = None
    ) -> None:
        self.decoder = decoder or ImageDecoderStage()
        self.engine = engine or OperationEngine()
        self.analyzer = analyzer or ImageAnalyzerStage()
        self.encoder = encoder or ImageEncoderStage()
        logger.info("[ImagePipeline] Инициализирован (4 stages)")

    def process(
        self,
        source: ImageSource,
        operations: Sequence[ImageOperation] = (),
        target_format: Optional[ImageFormat] = None
    ) -> Result[ProcessedImage]:
        """
        Decode → операции → Encode.

        Args:
            source: Путь к файлу или сырые байты
            operations: Операции в порядке применения
            target_format: Формат результата (по умолчанию - формат исходника)

        Returns:
            Success(ProcessedImage) или Failure(первая ошибка, стадия)
        """
        run = PipelineRun(self._describe(source))

        try:
            decoded = self.decoder.decode(source)

            run.advance(PipelineStage.TRANSFORMING)
            metadata = ImageMetadata(
                original_path=decoded.original_path,
                source_format=decoded.source_format
            )
            buffer, metadata = self.engine.apply_all(decoded.buffer, operations, metadata)

            run.advance(PipelineStage.ENCODING)
            requested_format = target_format or decoded.source_format or self.encoder.fallback_format
            encoded = self.encoder.encode(buffer, requested_format)
            metadata = metadata.model_copy(update={
                "requested_format": encoded.requested_format,
                "encoded_format": encoded.encoded_format,
            })

            try:
                processed = ProcessedImage(
                    width=buffer.width,
                    height=buffer.height,
                    format=encoded.requested_format,
                    data=encoded.data,
                    metadata=metadata
                )
            except ValidationError as e:
                raise ContractValidationError("S4", "ProcessedImage", e.errors())

        except ImageProcessingError as e:
            return run.fail(e)
        except Exception as e:
            return run.fail(self._unexpected(e))

        run.advance(PipelineStage.DONE)
        logger.info(
            f"[ImagePipeline] ✅ Готово: {run.name} ({decoded.size_bytes} байт) → {processed.width}x{processed.height} "
            f"{processed.format.value}"
            f"{f' (закодировано как {encoded.encoded_format.value})' if encoded.used_fallback else ''}, "
            f"операции={[op.kind for op in metadata.operations]}"
        )
        return Success(processed)

    def analyze(
        self,
        source: ImageSource,
        hint: Optional[str] = None,
        operations: Sequence[ImageOperation] = ()
    ) -> Result[ImageAnalysis]:
        """
        Decode → операции (опционально) → Analyze.

        Args:
            source: Путь к файлу или сырые байты
            hint: Подсказка вызывающей стороны
            operations: Операции перед анализом

        Returns:
            Success(ImageAnalysis) или Failure(первая ошибка, стадия)
        """
        run = PipelineRun(self._describe(source))

        try:
            decoded = self.decoder.decode(source)

            run.advance(PipelineStage.TRANSFORMING)
            metadata = ImageMetadata(
                original_path=decoded.original_path,
                source_format=decoded.source_format,
                hint=hint
            )
            buffer, metadata = self.engine.apply_all(decoded.buffer, operations, metadata)

            run.advance(PipelineStage.ANALYZING)
            analysis = self.analyzer.analyze(buffer, decoded.original_path, hint=hint, metadata=metadata)

        except ImageProcessingError as e:
            return run.fail(e)
        except Exception as e:
            return run.fail(self._unexpected(e))

        run.advance(PipelineStage.DONE)
        logger.info(f"[ImagePipeline] ✅ Анализ готов: {run.name} → {analysis.description}")
        return Success(analysis)

    @staticmethod
    def _describe(source: ImageSource) -> str:
        if isinstance(source, (bytes, bytearray, memoryview)):
            return f"<{len(source)} bytes>"
        return Path(source).name

    @staticmethod
    def _unexpected(error: Exception) -> ImageProcessingError:
        return ImageProcessingError(
            message="Unexpected processing failure",
            component="ImagePipeline",
            original_error=error
        )
