import threading
from rvunits.module import Module
from rvunits.port import Input, Output
from rvunits.simulator import Simulator
from rvunits.util import (MASK_32, UnitObj, WordIndex, get_bit, get_bits,
                          set_bits, signext, zeroext)
from rvunits.log import logger
from rvunits.clocked import Clocked
from rvunits.isa import (LOAD_F3, STORE_F3, AddressOutOfRangeException,
                         InvalidLoadWidthException)


def byte_sel(addr: int) -> int:
    """Byte lane inside the addressed word."""
    return get_bits(addr, 1, 0)


def half_sel(addr: int) -> int:
    """Half lane inside the addressed word."""
    return get_bit(addr, 0)


def compose_store(word: int, addr: int, wdata: int, funct3: int) -> int:
    """Applies a store to a word.

    Args:
        word: Current word.
        addr: Byte address of the store.
        wdata: Store data. Only the lower byte/half is used for SB/SH.
        funct3: Store width.

    Returns:
        The updated word. Unsupported widths leave `word` unchanged.
    """
    if funct3 == STORE_F3['SB']:
        lo = 8 * byte_sel(addr)
        return set_bits(word, lo + 7, lo, wdata)
    elif funct3 == STORE_F3['SH']:
        lo = 16 * half_sel(addr)
        return set_bits(word, lo + 15, lo, wdata)
    elif funct3 == STORE_F3['SW']:
        return MASK_32 & wdata
    else:
        return word


def extract_load(word: int, addr: int, funct3: int) -> int:
    """Selects and extends the loaded lane of a word.

    Raises:
        InvalidLoadWidthException: `funct3` is not a load width.
    """
    if funct3 in (LOAD_F3['LB'], LOAD_F3['LBU']):
        lo = 8 * byte_sel(addr)
        val = get_bits(word, lo + 7, lo)
        if funct3 == LOAD_F3['LB']:
            return signext(val, 8)
        return zeroext(val, 8)
    elif funct3 in (LOAD_F3['LH'], LOAD_F3['LHU']):
        lo = 16 * half_sel(addr)
        val = get_bits(word, lo + 15, lo)
        if funct3 == LOAD_F3['LH']:
            return signext(val, 16)
        return zeroext(val, 16)
    elif funct3 == LOAD_F3['LW']:
        return word
    else:
        raise InvalidLoadWidthException(funct3)


class MemPort(UnitObj):
    """Single read/write port. Loads and stores share the address."""
    def __init__(
        self,
        re_i: Input[bool],
        we_i: Input[bool],
        funct3_i: Input[int],
        addr_i: Input[int],
        wdata_i: Input[int],
        rdata_o: Output[int]
    ):
        super().__init__(name='UnnamedMemPort')

        self.re_i = re_i
        """Read-enable input"""
        self.we_i = we_i
        """Write-enable input"""
        self.funct3_i = funct3_i
        """Access width input (load/store funct3)"""
        self.addr_i = addr_i
        """Byte address input"""
        self.wdata_i = wdata_i
        """Write data input"""
        self.rdata_o = rdata_o
        """Read data output"""

    def _init(self, parent: UnitObj):
        # Ports belong to the memory, not to this bundle
        if self._visited:
            return
        self._visited = True

        for key, obj in self.__dict__.items():
            if isinstance(obj, UnitObj):
                obj.name = self.name + "." + key
                obj._init(parent)


class DataMemory(Module, Clocked):
    """Word-organized data memory with one read/write port.

    Memory is a list of 32-bit words. Byte-ordering: Little-endian.

    Writes are committed on the clock tick. The read path is combinational
    and sees the write request of the same cycle: a load is served from the
    stored word with the pending store already merged in.
    """

    def __init__(self, size: int = 64, name='UnnamedDataMemory'):
        """Memory constructor.

        Args:
            size: Size of memory in 32-bit words.
        """
        super().__init__(name)
        if size <= 0:
            raise ValueError(f"ERROR (DataMemory): Invalid size {size}")
        self.size = size
        self.mem = [0] * size
        """Memory array. List of `size` words."""

        self.port = MemPort(
            re_i=Input(bool),
            we_i=Input(bool),
            funct3_i=Input(int),
            addr_i=Input(int),
            wdata_i=Input(int),
            rdata_o=Output(int)
        )

        self.register_stable_callbacks([self.check_exception])
        self._access_error = None

        # Replaced by the simulator lock once attached to a simulator
        self._lock = threading.Lock()
        self._we_next = False

    def _init(self, parent=None):
        if self._visited:
            return
        super()._init(parent)
        if Simulator.active is not None:
            self._lock = Simulator.active.lock

    # --------------------------------
    # Word access
    # --------------------------------

    def word_index(self, addr: int) -> WordIndex:
        """Maps a byte address to the index of its word.

        Raises:
            AddressOutOfRangeException: Address lies outside the memory.
        """
        if addr < 0 or (addr >> 2) >= self.size:
            raise AddressOutOfRangeException(addr, self.size)
        return WordIndex(addr >> 2)

    def read_word(self, idx: WordIndex) -> int:
        """Returns the stored word at `idx`."""
        return self.mem[idx]

    # --------------------------------
    # Combinational read
    # --------------------------------

    def read(self, addr: int, funct3: int, we: bool = False,
             wdata: int = 0, store_funct3: int = None) -> int:
        """Reads from memory.

        If `we` is set, the store of this cycle is merged into the stored
        word before the load lane is selected. The port has a single funct3,
        so the store width is `funct3` as well unless `store_funct3` is
        given.

        Returns:
            The loaded value, sign- or zero-extended to 32 bits.

        Raises:
            AddressOutOfRangeException: Address lies outside the memory.
            InvalidLoadWidthException: Invalid `funct3`.
        """
        if store_funct3 is None:
            store_funct3 = funct3

        word = self.read_word(self.word_index(addr))
        if we:
            word = compose_store(word, addr, wdata, store_funct3)

        val = extract_load(word, addr, funct3)
        logger.debug(f"MEM ({self.name}): read value {val:08X} from address {addr:08X}")  # noqa: E501
        return val

    def process(self):
        re = self.port.re_i.read()
        we = self.port.we_i.read()
        addr = self.port.addr_i.read()
        f3 = self.port.funct3_i.read()
        wdata = self.port.wdata_i.read()

        # Inputs might not be stable yet, so errors are only reported once
        # the cycle has settled (check_exception()).
        self._access_error = None
        val = 0
        try:
            if we:
                self.word_index(addr)
            if re:
                val = self.read(addr, f3, we, wdata)
        except (AddressOutOfRangeException, InvalidLoadWidthException) as e:
            self._access_error = e

        self.port.rdata_o.write(val)

    def check_exception(self):
        if self._access_error is not None:
            raise self._access_error

        addr = self.port.addr_i.read()
        f3 = self.port.funct3_i.read()
        if not (self.port.re_i.read() or self.port.we_i.read()):
            return

        if f3 & 0b11 == 0b01 and addr & 0x1:
            logger.warning(f"MEM ({self.name}): misaligned half word access at address 0x{addr:08X}.")  # noqa: E501
        elif f3 == 0b010 and addr & 0x3:
            logger.warning(f"MEM ({self.name}): misaligned word access at address 0x{addr:08X}.")  # noqa: E501

    # --------------------------------
    # Clocked write
    # --------------------------------

    def write(self, addr: int, wdata: int, funct3: int, we: bool):
        """Requests a write, committed with the next `_tick()`.

        Raises:
            AddressOutOfRangeException: Address lies outside the memory.
        """
        self._we_next = False
        if not we:
            return

        self._idx_next = self.word_index(addr)
        self._we_next = True
        self._addr_next = addr
        self._wdata_next = wdata
        self._f3_next = funct3

    def _prepare_next_val(self):
        # Sample the port before anything else commits
        self.write(
            self.port.addr_i.read(),
            self.port.wdata_i.read(),
            self.port.funct3_i.read(),
            self.port.we_i.read())

    def _tick(self):
        if not self._we_next:
            return
        self._we_next = False

        idx = self._idx_next
        old = self.mem[idx]
        if self._f3_next not in STORE_F3.values():
            logger.debug(f"MEM ({self.name}): ignoring store with funct3 0b{self._f3_next:03b}")  # noqa: E501
            return

        self.mem[idx] = compose_store(
            old, self._addr_next, self._wdata_next, self._f3_next)
        logger.debug(f"MEM ({self.name}): word {idx} changed from {old:08X} to {self.mem[idx]:08X}")  # noqa: E501

    def _reset(self):
        """Reset memory.

        All words are set to 0.
        """
        self.mem = [0] * self.size
        self._we_next = False

    def tick(self, we: bool, funct3: int, addr: int, wdata: int,
             re: bool = True, load_funct3: int = None) -> int:
        """Runs one full cycle on this memory without a simulator.

        The read is evaluated first (forwarding the write of this very
        cycle), then the write is committed. Once the memory is attached to
        a simulator, this takes the simulator's lock, so it never
        interleaves with a running cycle.

        Args:
            we: Write enable.
            funct3: Load/store width.
            addr: Byte address.
            wdata: Write data.
            re: Read enable. If not set, no load is decoded and 0 is
                returned.
            load_funct3: Load width if it differs from the store width.

        Returns:
            The read data of this cycle.
        """
        if load_funct3 is None:
            load_funct3 = funct3

        with self._lock:
            rdata = 0
            if re:
                rdata = self.read(addr, load_funct3, we, wdata, funct3)
            self.write(addr, wdata, funct3, we)
            self._tick()
            return rdata

    # --------------------------------
    # Debug helpers
    # --------------------------------

    def load_words(self, words: list[int], base: WordIndex = 0):
        """Loads words into memory, starting at word index `base`."""
        if base < 0 or base + len(words) > self.size:
            raise AddressOutOfRangeException(4 * (base + len(words)), self.size)  # noqa: E501
        for i, w in enumerate(words):
            self.mem[base + i] = MASK_32 & w

    def dump_words(self) -> list[int]:
        """Returns a copy of the memory contents."""
        return list(self.mem)
