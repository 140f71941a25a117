"""ISA definitions.

Opcodes, funct3 tables and the exceptions raised by the functional units.
"""

# --------------------------------
# Opcodes (full 7 bit field)
# --------------------------------
OPCODES = {
    "LOAD": 0b0000011,
    "OP-IMM": 0b0010011,
    "AUIPC": 0b0010111,
    "STORE": 0b0100011,
    "OP": 0b0110011,
    "LUI": 0b0110111,
    "BRANCH": 0b1100011,
    "JALR": 0b1100111,
    "JAL": 0b1101111,
}

# --------------------------------
# funct3
# --------------------------------
LOAD_F3 = {
    "LB": 0b000,
    "LH": 0b001,
    "LW": 0b010,
    "LBU": 0b100,
    "LHU": 0b101,
}

STORE_F3 = {
    "SB": 0b000,
    "SH": 0b001,
    "SW": 0b010,
}

BRANCH_F3 = {
    "BEQ": 0b000,
    "BNE": 0b001,
    "BLT": 0b100,
    "BGE": 0b101,
    "BLTU": 0b110,
    "BGEU": 0b111,
}

# --------------------------------
# ALUOp (main decoder -> ALU decoder)
# --------------------------------
ALU_OP = {
    "ADD": 0b00,
    "SUB": 0b01,
    "FUNCT": 0b10,
}

# --------------------------------
# ImmSrc / ResultSrc encodings
# --------------------------------
IMM_SRC = {
    "I": 0b00,
    "S": 0b01,
    "B": 0b10,
    "J": 0b11,
}

RESULT_SRC = {
    "ALU": 0b00,
    "MEM": 0b01,
    "PC4": 0b10,
    "UIMM": 0b11,
}


# --------------------------------
# Exceptions
# --------------------------------

class DatapathException(Exception):
    """Base class of all errors raised by the functional units."""


class InvalidAluOpException(DatapathException):
    def __init__(self, op):
        self.op = op
        super().__init__(f"Invalid ALU operation '{op!r}'")


class AddressOutOfRangeException(DatapathException):
    def __init__(self, addr, size):
        self.addr = addr
        self.size = size
        msg = f"Address 0x{addr:08X} out of range for memory of {size} words"
        super().__init__(msg)


class InvalidLoadWidthException(DatapathException):
    def __init__(self, funct3):
        self.funct3 = funct3
        super().__init__(f"Invalid load funct3 0b{funct3:03b}")
