"""Shared pytest fixtures"""

import logging

import pytest

from blockon.core.abort import AbortFlag
from blockon.core.waker import park
from blockon.executor.runtime import SimpleRuntime
from blockon.executor.tracing import PollTracer


@pytest.fixture(autouse=True)
def drain_park_permit():
    """Keep stray wake permits of the test thread from leaking between tests"""
    park(timeout=0)
    yield
    park(timeout=0)


@pytest.fixture(autouse=True)
def restore_root_logging():
    """CLI tests reconfigure the root logger; put it back afterwards"""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def abort_flag():
    return AbortFlag()


@pytest.fixture
def tracer():
    return PollTracer(enable_detailed_logging=False)


@pytest.fixture
def runtime(abort_flag, tracer):
    return SimpleRuntime(abort_flag, tracer=tracer)
