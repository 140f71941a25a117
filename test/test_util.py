import pytest
from unittest.mock import MagicMock
from rvunits.util import (UnitObj, bool2bit, get_bit, get_bits, msb_32,
                          set_bits, signext, zeroext)


def test_get_bit():
    assert get_bit(1, 0) == 1
    assert get_bit(1, 1) == 0
    assert get_bit(8, 3) == 1


def test_get_bits():
    assert get_bits(3, 1, 0) == 3
    assert get_bits(3, 1, 1) == 1
    assert get_bits(15, 3, 2) == 3
    assert get_bits(0xdeadbeef, 31, 1) == 0x6F56DF77
    assert get_bits(0xdeadbeef, 15, 8) == 0xbe


def test_set_bits():
    assert set_bits(0x11223344, 15, 8, 0xab) == 0x1122ab44
    assert set_bits(0x11223344, 31, 16, 0x1beef) == 0xbeef3344
    assert set_bits(0, 7, 0, 0xfff) == 0xff


def test_signext():
    assert signext(0x80, 8) == 0xffffff80
    assert signext(0x7f, 8) == 0x7f
    assert signext(0x8000, 16) == 0xffff8000


def test_zeroext():
    assert zeroext(0x1ff, 8) == 0xff
    assert zeroext(0xffff8000, 16) == 0x8000


def test_msb_32():
    assert msb_32(0x80000000) == 1
    assert msb_32(0x7fffffff) == 0


def test_bool2bit():
    assert bool2bit(True) == 1
    assert bool2bit(False) == 0


class TestUnitObj:
    def test_init_naming(self):
        top = UnitObj("top")
        top.child = UnitObj()
        top.child.leaf = UnitObj()
        top._init()
        assert top.child.name == "top.child"
        assert top.child.leaf.name == "top.child.leaf"

    def test_init_once(self):
        top = UnitObj("top")
        top.child = UnitObj()
        top.child._init = MagicMock()
        top._init()
        top._init()
        top.child._init.assert_called_once_with(top)
