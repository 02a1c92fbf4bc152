import matplotlib

matplotlib.use("Agg")

import pytest

from pipeline_sim import Core, Program, Simulator, load_config


def run_core(core, limit=10000):
    """Cycle a bare Core until it has nothing left to do."""
    while core.halt_reason() is None and limit:
        core.pipeline_cycle()
        limit -= 1
    return core


def make_core(lines, registers=None, **kwargs):
    core = Core(Program(lines), **kwargs)
    for index, value in (registers or {}).items():
        core.registers.write(index, value)
    return core


@pytest.fixture
def sim():
    return Simulator(load_config(execution_speed=0))
