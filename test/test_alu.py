import random
import pytest
from rvunits.alu import AluCore, AluOperation, AluResult
from rvunits.isa import InvalidAluOpException
from rvunits.port import Input, Output
from rvunits.simulator import Simulator
from rvunits.test_utils import check_port, sext32


EDGE_VALUES = [
    0, 1, 2, 0x1f, 0x20, 0x7fffffff, 0x80000000, 0x80000001,
    0xfffffffe, 0xffffffff, 0xdeadbeef, 0x12345678
]


def operand_pairs():
    rng = random.Random(1234)
    pairs = [(a, b) for a in EDGE_VALUES for b in EDGE_VALUES]
    pairs += [(rng.getrandbits(32), rng.getrandbits(32)) for _ in range(500)]
    return pairs


@pytest.fixture
def alu() -> AluCore:
    alu = AluCore()
    alu._init()
    return alu


def test_constructor():
    alu = AluCore()
    check_port(alu.a_i, Input, int)
    check_port(alu.b_i, Input, int)
    check_port(alu.op_i, Input, AluOperation)
    check_port(alu.result_o, Output, int)
    check_port(alu.zero_o, Output, bool)
    check_port(alu.msb_o, Output, bool)
    check_port(alu.unsigned_lt_o, Output, bool)
    assert alu.op_i.read() == AluOperation.ADD


class TestArithmetic:
    def test_add(self, alu: AluCore):
        assert alu.compute(1, 2, AluOperation.ADD).result == 3
        res = alu.compute(0xffffffff, 1, AluOperation.ADD)
        assert res.result == 0
        assert res.zero

    def test_sub(self, alu: AluCore):
        for a, b in operand_pairs():
            res = alu.compute(a, b, AluOperation.SUB)
            assert res.result == (a - b) % 2**32
            assert res.zero == (a == b)

    def test_sub_wraps(self, alu: AluCore):
        assert alu.compute(0, 1, AluOperation.SUB).result == 0xffffffff

    def test_operands_are_masked(self, alu: AluCore):
        res = alu.compute(0x1_0000_0005, 0x2_0000_0003, AluOperation.ADD)
        assert res.result == 8


class TestCompare:
    def test_slt(self, alu: AluCore):
        for a, b in operand_pairs():
            expected = 1 if sext32(a) < sext32(b) else 0
            assert alu.compute(a, b, AluOperation.SLT).result == expected

    def test_sltu(self, alu: AluCore):
        for a, b in operand_pairs():
            expected = 1 if a < b else 0
            assert alu.compute(a, b, AluOperation.SLTU).result == expected

    def test_flags_describe_difference(self, alu: AluCore):
        for a, b in operand_pairs():
            res = alu.compute(a, b, AluOperation.SUB)
            assert res.unsigned_lt == (a < b)
            assert res.signed_lt == (sext32(a) < sext32(b))
            assert res.msb == bool(res.result >> 31)

    def test_overflow(self, alu: AluCore):
        # 0x7fffffff - (-1) overflows
        res = alu.compute(0x7fffffff, 0xffffffff, AluOperation.SUB)
        assert res.overflow
        assert res.msb
        assert not res.signed_lt

        # -2^31 - 1 overflows
        res = alu.compute(0x80000000, 1, AluOperation.SUB)
        assert res.overflow
        assert not res.msb
        assert res.signed_lt

        res = alu.compute(5, 3, AluOperation.SUB)
        assert not res.overflow


class TestLogic:
    def test_and_or_xor(self, alu: AluCore):
        a = 0xf0f0ff00
        b = 0x0ff0f0f0
        assert alu.compute(a, b, AluOperation.AND).result == 0x00f0f000
        assert alu.compute(a, b, AluOperation.OR).result == 0xfff0fff0
        assert alu.compute(a, b, AluOperation.XOR).result == 0xff000ff0

    def test_zero_flag_all_ops(self, alu: AluCore):
        for op in AluOperation:
            for a, b in operand_pairs()[:200]:
                res = alu.compute(a, b, op)
                assert res.zero == (res.result == 0)


class TestShift:
    def test_sll(self, alu: AluCore):
        assert alu.compute(1, 31, AluOperation.SLL).result == 0x80000000
        assert alu.compute(0xffffffff, 4, AluOperation.SLL).result == 0xfffffff0

    def test_shamt_low_five_bits(self, alu: AluCore):
        for a, b in operand_pairs():
            for op in [AluOperation.SLL, AluOperation.SRL, AluOperation.SRA]:
                assert alu.compute(a, b, op).result \
                    == alu.compute(a, b % 32, op).result

    def test_srl(self, alu: AluCore):
        assert alu.compute(0x80000000, 31, AluOperation.SRL).result == 1
        assert alu.compute(0xdeadbeef, 4, AluOperation.SRL).result == 0x0deadbee
        assert alu.compute(0xdeadbeef, 32, AluOperation.SRL).result == 0xdeadbeef

    def test_sra(self, alu: AluCore):
        assert alu.compute(0x80000000, 31, AluOperation.SRA).result == 0xffffffff
        assert alu.compute(0xdeadbeef, 4, AluOperation.SRA).result == 0xfdeadbee
        assert alu.compute(0x7eadbeef, 4, AluOperation.SRA).result == 0x07eadbee
        assert alu.compute(0x80000000, 0, AluOperation.SRA).result == 0x80000000

    def test_sra_matches_signed_shift(self, alu: AluCore):
        for a, b in operand_pairs():
            expected = (sext32(a) >> (b & 0x1f)) & 0xffffffff
            assert alu.compute(a, b, AluOperation.SRA).result == expected


class TestInvalidOp:
    def test_unknown_code(self, alu: AluCore):
        with pytest.raises(InvalidAluOpException):
            alu.compute(1, 2, 0b1111)

    def test_not_aliased_to_add(self, alu: AluCore):
        with pytest.raises(InvalidAluOpException, match="Invalid ALU operation"):
            alu.compute(0, 0, 10)

    def test_integer_encoding_accepted(self, alu: AluCore):
        assert alu.compute(7, 5, int(AluOperation.SUB)).result == 2

    def test_bool_rejected(self, alu: AluCore):
        # True == 1 == SUB as an int
        with pytest.raises(InvalidAluOpException):
            alu.compute(1, 2, True)

    def test_float_rejected(self, alu: AluCore):
        with pytest.raises(InvalidAluOpException):
            alu.compute(1, 2, 1.0)


def test_process(sim: Simulator, alu: AluCore):
    alu.a_i.write(3)
    alu.b_i.write(5)
    alu.op_i.write(AluOperation.SUB)
    sim.run_comb_logic()

    assert alu.result_o.read() == 0xfffffffe
    assert alu.zero_o.read() is False
    assert alu.msb_o.read() is True
    assert alu.unsigned_lt_o.read() is True

    alu.b_i.write(3)
    sim.run_comb_logic()
    assert alu.result_o.read() == 0
    assert alu.zero_o.read() is True


def test_result_is_frozen():
    res = AluResult(result=1, zero=False)
    with pytest.raises(Exception):
        res.result = 2
