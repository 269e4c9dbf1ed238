"""Allow running as ``python -m glowlines``."""

from .cli import main


main()
