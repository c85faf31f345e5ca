"""Color space and color range values understood by encoders.

Each enum value is the name the codec library uses for the corresponding
setting, so backends can assign it directly.
"""

from enum import Enum


class ColorSpace(Enum):
    """YUV matrix coefficients."""

    AUTO = "unknown"
    BT_601 = "bt470bg"
    BT_709 = "bt709"
    SMPTE_240M = "smpte240m"
    BT_2020_NC = "bt2020nc"
    BT_2020_C = "bt2020c"
    RGB = "rgb"
    YCGCO = "ycgco"

    @classmethod
    def from_library(cls, name: str | None) -> "ColorSpace":
        """Map a library color space name back to the enum.

        Aliases the library reports for BT.601 resolve to BT_601; anything
        unrecognized resolves to AUTO.
        """
        if not name:
            return cls.AUTO
        name = name.casefold()
        if name in ("smpte170m", "bt601", "bt470bg"):
            return cls.BT_601
        for member in cls:
            if member.value == name:
                return member
        return cls.AUTO


class ColorRange(Enum):
    """Luma/chroma value range."""

    AUTO = "unknown"
    LIMITED = "tv"
    FULL = "pc"

    @classmethod
    def from_library(cls, name: str | None) -> "ColorRange":
        """Map a library color range name back to the enum."""
        if not name:
            return cls.AUTO
        name = name.casefold()
        if name in ("tv", "mpeg", "limited"):
            return cls.LIMITED
        if name in ("pc", "jpeg", "full"):
            return cls.FULL
        return cls.AUTO
