from abc import ABC, abstractmethod


class Clocked(ABC):
    """State element updated on the rising clock edge."""

    @abstractmethod
    def _prepare_next_val(self):
        """Samples the inputs of the coming edge."""

    @abstractmethod
    def _tick(self):
        """Commits the sampled update."""

    @abstractmethod
    def _reset(self):
        """Returns to the power-on state."""


class Clock:
    """Clock of one simulator.

    Only elements attached to it are sampled, committed and reset.
    """

    def __init__(self):
        self._elems: list[Clocked] = []

    def attach(self, elem: Clocked):
        if elem not in self._elems:
            self._elems.append(elem)

    def __contains__(self, elem) -> bool:
        return elem in self._elems

    def __len__(self) -> int:
        return len(self._elems)

    def tick(self):
        """Rising edge.

        Every element samples before any element commits, so an element
        fed by another one sees the value of the ending cycle.
        """
        for e in self._elems:
            e._prepare_next_val()
        for e in self._elems:
            e._tick()

    def reset(self):
        for e in self._elems:
            e._reset()
