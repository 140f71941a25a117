"""Utility stuff."""

from typing import NewType


class UnitObj:
    """This class represents all datapath objects (such as units, ports,
    memories). Currently, this is used for initializing the hierarchical names
    of every object in the design.
    """
    def __init__(self, name="noName") -> None:
        self.name = name
        """Name of this object"""
        self._visited = False

    def _init(self, parent=None):
        """Initializes the object.

        This includes the following steps:
        - Set the name of each child UnitObj instance
        - Recursively call `_init()` for each child `UnitObj` instance
        """
        if self._visited:
            return
        self._visited = True

        for key, obj in self.__dict__.items():
            if isinstance(obj, UnitObj):
                obj.name = self.name + "." + key
                obj._init(self)


# XLEN
XLEN = 32

# 32 bit mask
MASK_32 = 0xffffffff

# Index of a 32-bit word inside a word-organized memory
WordIndex = NewType('WordIndex', int)


def msb_32(val) -> int:
    """Returns the MSB of a 32 bit value."""

    return (val & 0x80000000) >> 31


def get_bit(val, idx: int) -> int:
    """Gets a bit."""

    return (val >> idx) & 1


def get_bits(val, hiIdx: int, loIdx: int) -> int:
    """Returns a bit slice of a value.

    Args:
        val: Original value.
        hiIdx: Upper (high) index of slice.
        loIdx: Lower index of slice.

    Returns:
        The bit slice.
    """

    return (~(MASK_32 << (hiIdx - loIdx + 1)) & (val >> loIdx))


def set_bits(val, hiIdx: int, loIdx: int, field) -> int:
    """Replaces the bit slice `[hiIdx:loIdx]` of `val` with `field`.

    Bits of `field` that do not fit into the slice are dropped.

    Returns:
        The 32 bit value with the slice replaced.
    """
    width = hiIdx - loIdx + 1
    field_mask = ((1 << width) - 1) << loIdx

    return MASK_32 & ((val & ~field_mask) | ((field << loIdx) & field_mask))


def signext(val, width: int):
    """Sign-extends a value (`val`) of width `width` bits to 32-bits."""

    msb = get_bit(val, width - 1)

    if msb:  # 1
        val = MASK_32 & ((-1) << width | val)

    return val


def zeroext(val, width: int):
    """Zero-extends a value (`val`) of width `width` bits to 32-bits."""

    return val & ((1 << width) - 1)


def bool2bit(val: bool) -> int:
    """Turns a flag into a 32 bit 0/1 value."""
    return 1 if val else 0
