"""
This file configures a local pytest plugin, which allows us to configure plugin hooks to control the
execution of our tests.

Local plugins: https://docs.pytest.org/en/stable/how-to/writing_plugins.html#local-conftest-plugins
"""
import pytest

import ddsampling


@pytest.fixture(autouse=True)
def reset_global_config():
    """Make sure no test leaks sampling settings set in code into the next one"""
    ddsampling.config.reset()
    yield
    ddsampling.config.reset()
