from typing import Callable
from rvunits.clocked import Clocked
from rvunits.simulator import Simulator
from rvunits.util import UnitObj


class Module(UnitObj):
    """Base class for all functional units.

    A unit declares its ports in `__init__()` and reacts to input changes in
    `process()`. Initializing a unit (`_init()`) attaches it to the active
    simulator: its on-stable callbacks are registered and, for clocked
    units, it joins the simulator's clock.
    """

    def __init__(self, name='UnnamedModule'):
        super().__init__(name)
        self._stable_callbacks: list[Callable] = []

    def _init(self, parent=None):
        if self._visited:
            return
        super()._init(parent)

        sim = Simulator.active
        if sim is None:
            return
        for cb in self._stable_callbacks:
            sim._add_on_stable(cb)
        if isinstance(self, Clocked):
            sim.clock.attach(self)

    def register_stable_callbacks(self, callbacks: list[Callable]):
        """Methods run once per cycle after the signals settled, e.g. to
        report errors seen on possibly transient inputs."""
        self._stable_callbacks = callbacks
