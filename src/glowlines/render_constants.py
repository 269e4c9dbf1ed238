"""Shared render constants."""

from __future__ import annotations


__all__ = [
    "BACKGROUND_COLOR",
    "GLOW_ALPHA",
    "GLOW_COLOR",
    "GLOW_RADIUS_FACTOR",
    "GLOW_STEPS",
    "RASTER_DPI",
    "STROKE_COLOR",
    "VECTOR_DPI",
]

# Fixed colour scheme: light strokes over a dark background
BACKGROUND_COLOR = "#000000"
STROKE_COLOR = "#FFFFFF"
GLOW_COLOR = "#FFFFFF"

# Glow extends GLOW_RADIUS_FACTOR stroke widths beyond each side of the core
GLOW_RADIUS_FACTOR = 4.0
# Number of concentric glow strokes used to approximate the blur
GLOW_STEPS = 4
# Alpha of each glow stroke; low so overlapping lines accumulate
GLOW_ALPHA = 0.06

# One figure inch per pixel keeps the raster canvas size exact
RASTER_DPI = 1
# Vector pages are measured in points, one point per pixel
VECTOR_DPI = 72
