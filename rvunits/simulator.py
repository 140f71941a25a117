from collections import deque
from datetime import datetime
import threading
from typing import Callable
from rvunits.clocked import Clock
from rvunits.log import logger
from rvunits.util import UnitObj


class Simulator:
    """Cycle-stepped, single-threaded evaluator.

    A cycle settles the combinational logic first: scheduled sensitive
    methods run until no input changes anymore, then the on-stable callbacks
    run. After that, the clock ticks and the memories commit.

    Units belong to the simulator that was active when they were
    initialized. Their ports, callbacks and clocked state are kept here, not
    globally.
    """
    active: 'Simulator' = None
    """The most recently created simulator. Units initialized now join it."""

    def __init__(self):
        Simulator.active = self

        self.clock = Clock()
        self.lock = threading.Lock()
        """Held for a whole cycle, and by `DataMemory.tick()` of attached
        memories."""

        self._objs: list[UnitObj] = []
        self._ports = []
        self._watched = []
        self._pending = deque()
        self._on_stable: list[Callable] = []
        self._cycles = 0

    # --------------------------------
    # Setup
    # --------------------------------

    def addObj(self, obj: UnitObj):
        """Adds a top-level unit. Call `init()` afterwards.

        Raises:
            TypeError: `obj` is not a UnitObj.
        """
        if not isinstance(obj, UnitObj):
            raise TypeError(f"Object {obj} is not a UnitObj instance.")
        self._objs.append(obj)

    def init(self):
        """Names and initializes all added units."""
        Simulator.active = self
        for obj in self._objs:
            obj._init(self)

    def watch_ports(self, patterns: list[str]):
        """Logs only ports whose hierarchical name contains one of
        `patterns`. Without a watch list, every port is logged."""
        self._watched = [p for p in self._ports
                        if any(pat in p.name for pat in patterns)]

    def _add_port(self, port):
        self._ports.append(port)

    def _add_on_stable(self, callback: Callable):
        self._on_stable.append(callback)

    def _schedule(self, fn: Callable):
        if fn not in self._pending:
            self._pending.append(fn)

    # --------------------------------
    # Running
    # --------------------------------

    def run_comb_logic(self):
        """Settles the combinational logic of the current cycle."""
        while self._pending:
            fn = self._pending.popleft()
            logger.debug(f"Running {fn.__qualname__}")
            fn()
        for cb in self._on_stable:
            cb()
        return self

    def tick(self):
        """Clock edge: attached memories sample and commit."""
        self._log_ports()
        self.clock.tick()
        self._cycles += 1
        return self

    def step(self):
        """Runs one full cycle and settles the next one."""
        with self.lock:
            self._step()
        return self

    def _step(self):
        self.run_comb_logic()
        self.tick()
        self.run_comb_logic()

    def run(self, num_cycles=1, reset_mems: bool = True):
        """Runs `num_cycles` cycles.

        Args:
            reset_mems: Zero the attached memories first.
        """
        started = datetime.now().strftime("%A, %b %d, %Y at %H:%M:%S")
        logger.info(f"**** Simulation started on {started} ****")

        with self.lock:
            if reset_mems:
                self.reset()
            for _ in range(num_cycles):
                self._step()

    def reset(self):
        self.clock.reset()

    def get_cycles(self) -> int:
        return self._cycles

    def _log_ports(self):
        logger.info(f"**** Cycle {self._cycles} ****")
        for p in self._watched or self._ports:
            logger.info(f"{p.name}: {p.read()}")
