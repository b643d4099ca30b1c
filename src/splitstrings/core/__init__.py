"""Core coordinate types shared by the string engine and editor hosts."""

from .positions import LineRange, Position, Range

__all__ = ["Position", "Range", "LineRange"]
