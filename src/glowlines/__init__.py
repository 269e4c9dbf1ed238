"""glowlines - Render PostGIS line geometries into glowing raster or vector images.

This package streams line strings out of a database query through a
server-side cursor and draws them onto a single canvas, keeping memory
bounded regardless of how many rows the query returns.
"""

from importlib.metadata import PackageNotFoundError, version


try:
    __version__ = version("glowlines")
except PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = ["__version__"]
