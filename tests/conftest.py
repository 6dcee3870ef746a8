"""
Shared test fixtures and helpers for pipe_queue tests.
"""

import os
import multiprocessing as mp

import pytest


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "multiprocess: test spawns child processes"
    )


@pytest.fixture()
def fifo_path(tmp_path):
    """Path for a FIFO that does not exist yet; removed after the test."""
    path = tmp_path / "queue.fifo"
    yield path
    if os.path.lexists(path):
        os.unlink(path)


def run_in_process(fn, *args, timeout=10.0):
    """Run *fn* in a child process; return (exitcode, exception_str).

    Returns exitcode=0 on success.
    """
    p = mp.get_context("spawn").Process(target=fn, args=args, daemon=True)
    p.start()
    p.join(timeout=timeout)
    if p.is_alive():
        p.terminate()
        p.join(1)
        return -1, "timeout"
    return p.exitcode, None
