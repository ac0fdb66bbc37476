import contextlib
import unittest

import ddsampling

from ..utils import override_env


class BaseTestCase(unittest.TestCase):
    """
    BaseTestCase extends ``unittest.TestCase`` to provide some useful helpers/assertions


    Example::

        from tests.base import BaseTestCase


        class MyTestCase(BaseTestCase):
            def test_case(self):
                with self.override_config(dict(sample_rate=0.5)):
                    pass
    """

    # Expose `override_env` as `self.override_env`
    override_env = staticmethod(override_env)

    @staticmethod
    @contextlib.contextmanager
    def override_config(values):
        """
        Temporarily override the global sampling configuration::

            >>> with self.override_config(dict(rate_limit=10)):
                # Your test
        """
        # DEV: Uses dict as interface but internally handled as attributes on Config instance
        config = ddsampling.config
        original = dict(config._overrides)

        for key, value in values.items():
            setattr(config, key, value)
        try:
            yield
        finally:
            config._overrides.clear()
            config._overrides.update(original)
