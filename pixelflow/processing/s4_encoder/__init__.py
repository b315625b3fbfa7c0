"""Stage 4: Encoder."""

from .stage import ImageEncoderStage, EncodedImage

__all__ = ['ImageEncoderStage', 'EncodedImage']
