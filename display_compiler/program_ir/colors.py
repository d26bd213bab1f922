"""Color and rectangle value types.

``Color`` is an exact four-byte RGBA value.  Equality is per channel;
``sort_key`` packs the channels big-endian into one integer and exists
only to group rectangles of the same color next to each other.

``Rectangle`` is one uniformly colored block of source pixels produced by
the decomposer.  Coordinates are source-pixel units of one tile.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True, slots=True)
class Color:
    """Exact RGBA color, one unsigned byte per channel."""

    r: int
    g: int
    b: int
    a: int = 255

    def __post_init__(self) -> None:
        for ch, val in (("r", self.r), ("g", self.g), ("b", self.b), ("a", self.a)):
            if not 0 <= val <= 255:
                raise ValueError(f"Color {ch} must be in [0, 255], got {val}")

    @property
    def sort_key(self) -> int:
        """Big-endian packing ``r<<24 | g<<16 | b<<8 | a``."""
        return (self.r << 24) | (self.g << 16) | (self.b << 8) | self.a

    @classmethod
    def from_key(cls, key: int) -> Color:
        """Inverse of :attr:`sort_key`."""
        return cls(
            r=(key >> 24) & 0xFF,
            g=(key >> 16) & 0xFF,
            b=(key >> 8) & 0xFF,
            a=key & 0xFF,
        )

    @classmethod
    def from_components(cls, components: Sequence[int], channels: int) -> Color:
        """Build a color from one pixel's byte components.

        Parameters
        ----------
        components : Sequence[int]
            Byte values of the pixel, at least *channels* long.
        channels : int
            Channel count of the source image.

        Returns
        -------
        Color
            Grey for 1-2 channels, RGB for 3-4 channels.  The quantized
            image's alpha is not carried; every color is opaque.  Any
            other channel count yields opaque white.
        """
        if channels in (1, 2):
            c = int(components[0])
            return cls(c, c, c, 255)
        if channels in (3, 4):
            return cls(int(components[0]), int(components[1]), int(components[2]), 255)
        return cls(255, 255, 255, 255)

    def hex(self) -> str:
        """``#RRGGBBAA`` form used in build summaries."""
        return f"#{self.r:02X}{self.g:02X}{self.b:02X}{self.a:02X}"

    def __str__(self) -> str:
        return f"{self.r},{self.g},{self.b},{self.a}"


@dataclass(frozen=True, slots=True)
class Rectangle:
    """Axis-aligned, uniformly colored block of source pixels.

    Parameters
    ----------
    x, y : int
        Top-left origin in source pixels.
    width, height : int
        Positive extent in source pixels.
    color : Color
        Fill color shared by every covered pixel.
    """

    x: int
    y: int
    width: int
    height: int
    color: Color

    def __post_init__(self) -> None:
        if self.width < 1 or self.height < 1:
            raise ValueError(
                f"Rectangle requires positive size, got {self.width}x{self.height}"
            )

    @property
    def area(self) -> int:
        return self.width * self.height

    def cells(self) -> list[tuple[int, int]]:
        """Every ``(x, y)`` pixel covered, row-major."""
        return [
            (xx, yy)
            for yy in range(self.y, self.y + self.height)
            for xx in range(self.x, self.x + self.width)
        ]

    def __str__(self) -> str:
        return f"{self.x}, {self.y} : {self.width}, {self.height}; {self.color}"
