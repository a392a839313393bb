"""Anchor extraction from directory listings."""

from webfind.extraction.anchors import Anchor, extract_anchors

__all__ = ["Anchor", "extract_anchors"]
