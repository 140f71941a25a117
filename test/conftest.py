import logging
import pytest
from rvunits.simulator import Simulator


@pytest.fixture(autouse=True)
def sim() -> Simulator:
    logging.disable(logging.NOTSET)
    sim = Simulator()
    yield sim
    Simulator.active = None
