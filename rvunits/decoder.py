from dataclasses import dataclass
from rvunits.alu import AluOperation
from rvunits.module import Module
from rvunits.port import Input, Output
from rvunits.util import get_bit, get_bits
from rvunits.log import logger
import rvunits.isa as isa


@dataclass
class ControlWord:
    """Control signals of one instruction."""
    reg_write: bool = False
    imm_src: int = 0
    alu_src: bool = False
    mem_write: bool = False
    result_src: int = 0
    alu_op: int = 0
    jump: bool = False
    jalr: bool = False

    def pack(self) -> int:
        """Packs the control word into 11 bits.

        Layout (MSB first): reg_write, imm_src[1:0], alu_src, mem_write,
        result_src[1:0], alu_op[1:0], jump, jalr.
        """
        return (
            int(self.reg_write) << 10
            | (self.imm_src & 0b11) << 8
            | int(self.alu_src) << 7
            | int(self.mem_write) << 6
            | (self.result_src & 0b11) << 4
            | (self.alu_op & 0b11) << 2
            | int(self.jump) << 1
            | int(self.jalr))

    @staticmethod
    def unpack(bits: int) -> 'ControlWord':
        """Inverse of `pack()`."""
        return ControlWord(
            reg_write=bool(get_bit(bits, 10)),
            imm_src=get_bits(bits, 9, 8),
            alu_src=bool(get_bit(bits, 7)),
            mem_write=bool(get_bit(bits, 6)),
            result_src=get_bits(bits, 5, 4),
            alu_op=get_bits(bits, 3, 2),
            jump=bool(get_bit(bits, 1)),
            jalr=bool(get_bit(bits, 0)))


# Don't-care fields are 0
_CONTROL_TABLE = {
    isa.OPCODES['LOAD']: ControlWord(
        reg_write=True, imm_src=isa.IMM_SRC['I'], alu_src=True,
        result_src=isa.RESULT_SRC['MEM'], alu_op=isa.ALU_OP['ADD']),
    isa.OPCODES['STORE']: ControlWord(
        imm_src=isa.IMM_SRC['S'], alu_src=True, mem_write=True,
        alu_op=isa.ALU_OP['ADD']),
    isa.OPCODES['OP']: ControlWord(
        reg_write=True, alu_op=isa.ALU_OP['FUNCT']),
    isa.OPCODES['BRANCH']: ControlWord(
        imm_src=isa.IMM_SRC['B'], alu_op=isa.ALU_OP['SUB']),
    isa.OPCODES['OP-IMM']: ControlWord(
        reg_write=True, imm_src=isa.IMM_SRC['I'], alu_src=True,
        alu_op=isa.ALU_OP['FUNCT']),
    isa.OPCODES['JAL']: ControlWord(
        reg_write=True, imm_src=isa.IMM_SRC['J'],
        result_src=isa.RESULT_SRC['PC4'], jump=True),
    isa.OPCODES['JALR']: ControlWord(
        reg_write=True, imm_src=isa.IMM_SRC['I'], alu_src=True,
        result_src=isa.RESULT_SRC['PC4'], jalr=True),
}

# LUI and AUIPC share one entry: 0?10111
_UPPER_IMM_MASK = 0b1011111
_UPPER_IMM_MATCH = 0b0010111
_UPPER_IMM_CONTROLS = ControlWord(
    reg_write=True, alu_src=True, result_src=isa.RESULT_SRC['UIMM'])


class MainDecoder(Module):
    """Main decoder.

    Inputs:
        opcode_i: Opcode (7 bits).
        funct3_i: Branch condition.
        zero_i: ALU zero flag.
        alu_msb_i: Sign bit of the ALU result.
        unsigned_lt_i: Unsigned less-than from the ALU.

    Outputs:
        controls_o: Control word.
        branch_o: Whether a branch is taken.
    """

    def __init__(self, name='UnnamedMainDecoder'):
        super().__init__(name)
        self.opcode_i = Input(int)
        self.funct3_i = Input(int)
        self.zero_i = Input(bool)
        self.alu_msb_i = Input(bool)
        self.unsigned_lt_i = Input(bool)

        self.controls_o = Output(ControlWord)
        self.branch_o = Output(bool)

    def process(self):
        opcode = self.opcode_i.read()

        branch = False
        if opcode == isa.OPCODES['BRANCH']:
            branch = self.branch_taken(
                self.funct3_i.read(),
                self.zero_i.read(),
                self.alu_msb_i.read(),
                self.unsigned_lt_i.read())

        self.controls_o.write(self.decode(opcode))
        self.branch_o.write(branch)

    def decode(self, opcode: int) -> ControlWord:
        """Looks up the control signals of an opcode.

        Args:
            opcode: 7 bit opcode.

        Returns:
            A fresh `ControlWord`. Unknown opcodes, and values that do not
            fit into 7 bits, yield the all-zero word.
        """
        if not 0 <= opcode <= 0x7f:
            logger.debug(f"Main decoder ({self.name}): opcode 0x{opcode:X} wider than 7 bits, no side effects.")  # noqa: E501
            controls = ControlWord()
        elif opcode in _CONTROL_TABLE:
            controls = _CONTROL_TABLE[opcode]
        elif opcode & _UPPER_IMM_MASK == _UPPER_IMM_MATCH:
            controls = _UPPER_IMM_CONTROLS
        else:
            logger.debug(f"Main decoder ({self.name}): unknown opcode 0b{opcode:07b}, no side effects.")  # noqa: E501
            controls = ControlWord()

        return ControlWord(**vars(controls))

    def branch_taken(self, funct3: int, zero: bool, alu_msb: bool,
                     unsigned_lt: bool) -> bool:
        """Evaluates the branch condition selected by funct3.

        The inputs are the flags of the ALU computing rs1 - rs2.

        Note: BGEU reuses the BGE condition (`not alu_msb`) and does not
        look at `unsigned_lt`.

        Returns:
            True if the branch is taken.
        """
        f3 = isa.BRANCH_F3
        if funct3 == f3['BEQ']:
            return zero
        elif funct3 == f3['BNE']:
            return not zero
        elif funct3 == f3['BLT']:
            return alu_msb
        elif funct3 == f3['BGE']:
            return not alu_msb
        elif funct3 == f3['BLTU']:
            return unsigned_lt
        elif funct3 == f3['BGEU']:
            return not alu_msb
        else:
            return False


class AluOpDecoder(Module):
    """ALU decoder.

    Translates the coarse ALUOp of the main decoder plus instruction fields
    into an `AluOperation`.

    Inputs:
        opb5_i: Bit 5 of the opcode (set for R-type).
        funct3_i: funct3 field.
        funct7b5_i: Bit 5 of funct7.
        alu_op_i: ALUOp from the main decoder.

    Outputs:
        alu_control_o: Operation for the ALU.
    """

    def __init__(self, name='UnnamedAluDecoder'):
        super().__init__(name)
        self.opb5_i = Input(bool)
        self.funct3_i = Input(int)
        self.funct7b5_i = Input(bool)
        self.alu_op_i = Input(int)

        self.alu_control_o = Output(AluOperation, default=AluOperation.ADD)

    def process(self):
        op = self.decode(
            self.opb5_i.read(),
            self.funct3_i.read(),
            self.funct7b5_i.read(),
            self.alu_op_i.read())
        self.alu_control_o.write(op)

    def decode(self, opb5: bool, funct3: int, funct7b5: bool,
               alu_op: int) -> AluOperation:
        """Returns the ALU operation. Unmatched inputs fall back to ADD."""
        if alu_op == isa.ALU_OP['ADD']:
            return AluOperation.ADD
        elif alu_op == isa.ALU_OP['SUB']:
            return AluOperation.SUB
        elif alu_op != isa.ALU_OP['FUNCT']:
            return AluOperation.ADD

        if funct3 == 0b000:
            # SUB only for R-type; ADDI has no SUB counterpart
            if funct7b5 and opb5:
                return AluOperation.SUB
            return AluOperation.ADD
        elif funct3 == 0b001:
            return AluOperation.SLL
        elif funct3 == 0b010:
            return AluOperation.SLT
        elif funct3 == 0b011:
            return AluOperation.SLTU
        elif funct3 == 0b100:
            return AluOperation.XOR
        elif funct3 == 0b101:
            if funct7b5:
                return AluOperation.SRA
            return AluOperation.SRL
        elif funct3 == 0b110:
            return AluOperation.OR
        elif funct3 == 0b111:
            return AluOperation.AND
        else:
            return AluOperation.ADD
