"""Figma REST API client."""

from .figma_client import FigmaAPIError, FigmaClient, split_variables, unwrap_list

__all__ = ["FigmaAPIError", "FigmaClient", "split_variables", "unwrap_list"]
