"""Stage 3: Analyzer."""

from .stage import ImageAnalyzerStage
from .classifier import (
    ImageClassifier,
    ImageClassification,
    ColorClass,
    BrightnessLevel,
    ContrastLevel,
    Orientation,
)

__all__ = [
    'ImageAnalyzerStage',
    'ImageClassifier',
    'ImageClassification',
    'ColorClass',
    'BrightnessLevel',
    'ContrastLevel',
    'Orientation',
]
