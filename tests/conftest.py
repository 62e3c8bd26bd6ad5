"""
Shared fixtures: process-wide signing and resolution state is reset
around every test.
"""

import pytest

from freemius_api.signing import set_clock_diff
from freemius_api.transport import reset_ip_resolution


@pytest.fixture(autouse=True)
def reset_process_state():
    set_clock_diff(0)
    reset_ip_resolution()
    yield
    set_clock_diff(0)
    reset_ip_resolution()
