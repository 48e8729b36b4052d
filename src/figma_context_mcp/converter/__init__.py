"""Conversion of Figma documents into Model Context."""

from .figma_adapter import ConversionError, ConversionOptions, FigmaToModelContextAdapter

__all__ = ["ConversionError", "ConversionOptions", "FigmaToModelContextAdapter"]
