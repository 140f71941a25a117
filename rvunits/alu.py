from dataclasses import dataclass
from enum import IntEnum
from rvunits.module import Module
from rvunits.port import Input, Output
from rvunits.isa import InvalidAluOpException
from rvunits.util import MASK_32, XLEN, bool2bit, msb_32
from rvunits.log import logger


class AluOperation(IntEnum):
    """ALU control encoding."""
    ADD = 0b0000
    SUB = 0b0001
    AND = 0b0010
    OR = 0b0011
    XOR = 0b0100
    SLT = 0b0101
    SLTU = 0b0110
    SLL = 0b0111
    SRL = 0b1000
    SRA = 0b1001


@dataclass(frozen=True)
class AluResult:
    result: int = 0
    zero: bool = True
    msb: bool = False
    """Bit 31 of `result`"""
    unsigned_lt: bool = False
    """a < b (unsigned)"""
    signed_lt: bool = False
    """a < b (signed)"""
    overflow: bool = False
    """Signed overflow of a - b"""


class AluCore(Module):
    """Integer arithmetic-logic unit (ALU).

    Inputs:
        a_i: First operand.
        b_i: Second operand.
        op_i: Operation to perform.

    Outputs:
        result_o: Result of the operation.
        zero_o: Whether the result is zero.
        msb_o: Sign bit of the result.
        unsigned_lt_o: Unsigned less-than of the operands.
    """

    def __init__(self, name='UnnamedAlu'):
        super().__init__(name)
        self.a_i = Input(int)
        self.b_i = Input(int)
        self.op_i = Input(AluOperation, default=AluOperation.ADD)

        self.result_o = Output(int)
        self.zero_o = Output(bool, default=True)
        self.msb_o = Output(bool)
        self.unsigned_lt_o = Output(bool)

    def process(self):
        # Read inputs
        a = self.a_i.read()
        b = self.b_i.read()
        op = self.op_i.read()

        res = self.compute(a, b, op)

        # Outputs
        self.result_o.write(res.result)
        self.zero_o.write(res.zero)
        self.msb_o.write(res.msb)
        self.unsigned_lt_o.write(res.unsigned_lt)

    def compute(self, a: int, b: int, op) -> AluResult:
        """Computes `a op b`.

        Operands are taken modulo 2^32. Besides the result, the comparison
        flags of `a - b` are reported for every operation.

        Args:
            a: First operand.
            b: Second operand.
            op: An `AluOperation` (or its integer encoding).

        Returns:
            The `AluResult`.

        Raises:
            InvalidAluOpException: `op` is not a known operation.
        """
        # IntEnum lookup would accept True and 1.0 as SUB
        if isinstance(op, bool) or not isinstance(op, int):
            raise InvalidAluOpException(op)
        try:
            op = AluOperation(op)
        except ValueError:
            raise InvalidAluOpException(op) from None

        a &= MASK_32
        b &= MASK_32

        diff = MASK_32 & (a - b)
        a_sign = msb_32(a)
        b_sign = msb_32(b)
        d_sign = msb_32(diff)

        unsigned_lt = a < b
        overflow = bool(
            (a_sign and not b_sign and not d_sign)
            or (not a_sign and b_sign and d_sign))
        signed_lt = bool(d_sign) != overflow

        # Shift amount: lower 5 bits only
        shamt = 0x1f & b

        if op == AluOperation.ADD:
            res = a + b
        elif op == AluOperation.SUB:
            res = diff
        elif op == AluOperation.AND:
            res = a & b
        elif op == AluOperation.OR:
            res = a | b
        elif op == AluOperation.XOR:
            res = a ^ b
        elif op == AluOperation.SLT:
            res = bool2bit(signed_lt)
        elif op == AluOperation.SLTU:
            res = bool2bit(unsigned_lt)
        elif op == AluOperation.SLL:
            res = a << shamt
        elif op == AluOperation.SRL:
            res = a >> shamt
        else:  # SRA
            res = a >> shamt
            if a_sign and shamt:
                # Fill upper bits with 1s
                res |= MASK_32 << (XLEN - shamt)

        res &= MASK_32

        logger.debug(f"ALU ({self.name}): {op.name} 0x{a:08X}, 0x{b:08X} -> 0x{res:08X}")  # noqa: E501

        return AluResult(
            result=res,
            zero=res == 0,
            msb=bool(msb_32(res)),
            unsigned_lt=unsigned_lt,
            signed_lt=signed_lt,
            overflow=overflow)
