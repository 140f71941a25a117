from typing import Generic, Type, TypeVar
from rvunits.log import logger
from rvunits.simulator import Simulator
from rvunits.util import UnitObj


T = TypeVar('T')


class Port(UnitObj, Generic[T]):
    """Typed signal of a unit.

    Ports form driver trees: a connected port has no value of its own and
    reads through to the unconnected port at the top of its tree (the
    *root*). Only a root can be written.
    """
    def __init__(self, type: Type[T], default: T = None):
        super().__init__(name='UnnamedPort')
        self._type = type
        self._val = type() if default is None else default
        self._driver: Port = None
        # Inputs below this port, notified when a root changes
        self._sinks: list[Input] = []

    def _init(self, parent=None):
        if self._visited:
            return
        self._visited = True
        if Simulator.active is not None:
            Simulator.active._add_port(self)

    def _root(self) -> 'Port':
        port = self
        while port._driver is not None:
            port = port._driver
        return port

    def read(self) -> T:
        """Returns the current value (the root's value)."""
        return self._root()._val

    def write(self, val: T):
        """Writes a new value.

        Sensitive methods of this port and of every input it drives are
        scheduled if the value changes.

        Raises:
            Exception: The port is driven by another port.
            TypeError: `val` is not of the port's type.
        """
        if self._driver is not None:
            raise Exception(f"ERROR (Port '{self.name}'): Only root driver port allowed to write!")  # noqa: E501
        if type(val) is not self._type:
            raise TypeError(f"ERROR: Cannot write value of type {type(val)} to Port {self.name} which is of type {self._type}.")  # noqa: E501
        if self._val == val:
            return

        logger.debug(f"Port {self.name} changed from {self._val} to {val}.")
        self._val = val
        self._schedule()
        for sink in self._sinks:
            sink._schedule()

    def _schedule(self):
        pass

    def connect(self, driver: 'Port'):
        """Lets `driver` drive this port. `A << B` is the same as
        `A.connect(B)`.

        Raises:
            Exception: Self-connection or port already driven.
            TypeError: `driver` is no port or has another type.
        """
        if driver is self:
            raise Exception("ERROR (Port): Cannot connect port to itself!")
        if not isinstance(driver, Port):
            raise TypeError(f"{driver} is not a Port!")
        if self._type != driver._type:
            raise TypeError(f"Port type mismatch: This port is of type {self._type}, while driver is of type {driver._type}.")  # noqa: E501
        if self._driver is not None:
            raise Exception(
                f"ERROR (Port): Port {self.name} already has a parent!")

        self._driver = driver
        moved = self._sinks + ([self] if isinstance(self, Input) else [])
        self._sinks = []
        driver._root()._sinks.extend(moved)
        del self._val

    def __lshift__(self, driver: 'Port'):
        self.connect(driver)


class Input(Port[T]):
    """Input port of a unit.

    A change of the input value schedules its sensitive methods for
    evaluation.
    """
    def __init__(self, type: Type[T], sensitive_methods: list = None,
                 default: T = None):
        """
        Args:
            type: Data type of the input.
            sensitive_methods: Methods to schedule on a change. `None`
                means the owning unit's `process()`, `[]` means nothing.
            default: Initial value.
        """
        super().__init__(type, default)
        self._methods = sensitive_methods

    def _init(self, parent=None):
        if self._visited:
            return
        super()._init(parent)
        if self._methods is None:
            process = getattr(parent, 'process', None)
            self._methods = [process] if callable(process) else []
        # Evaluate once in the first cycle
        self._schedule()

    def _schedule(self):
        sim = Simulator.active
        if sim is None or not self._methods:
            return
        for fn in self._methods:
            sim._schedule(fn)


class Output(Port[T]):
    """Output port of a unit."""
