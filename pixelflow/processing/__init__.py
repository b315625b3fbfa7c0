"""
Processing: кодек, стадии и оркестратор пайплайна.
"""

from .codec import ImageCodec, DecodedImage, ensure_codecs_registered
from .s1_decoder import ImageDecoderStage, DecodedSource
from .s2_transform import OperationEngine
from .s3_analyzer import ImageAnalyzerStage, ImageClassifier
from .s4_encoder import ImageEncoderStage, EncodedImage
from .pipeline import ImagePipeline, PipelineRun, PipelineStage

__all__ = [
    'ImageCodec',
    'DecodedImage',
    'ensure_codecs_registered',
    'ImageDecoderStage',
    'DecodedSource',
    'OperationEngine',
    'ImageAnalyzerStage',
    'ImageClassifier',
    'ImageEncoderStage',
    'EncodedImage',
    'ImagePipeline',
    'PipelineRun',
    'PipelineStage',
]
