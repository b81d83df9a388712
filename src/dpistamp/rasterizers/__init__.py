"""Rasterizer implementations."""

from .base import EncodedImage, Rasterizer
from .pillow import PillowRasterizer

__all__ = [
    "EncodedImage",
    "PillowRasterizer",
    "Rasterizer",
]
