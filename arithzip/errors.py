from __future__ import annotations


class FormatError(ValueError):
    """Compressed data is inconsistent with the header or the coder state."""
