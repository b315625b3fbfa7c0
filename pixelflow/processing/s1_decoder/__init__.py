"""Stage 1: Decoder."""

from .stage import ImageDecoderStage, DecodedSource

__all__ = ['ImageDecoderStage', 'DecodedSource']
