import contextlib
import os
import random

from ddsampling.trace import Trace


@contextlib.contextmanager
def override_env(env):
    """
    Temporarily override ``os.environ`` with provided values::

        >>> with self.override_env(dict(DD_TRACE_SAMPLE_RATE='0.5')):
            # Your test
    """
    # Copy the full original environment
    original = dict(os.environ)

    # Update based on the passed in arguments
    os.environ.update(env)
    try:
        yield
    finally:
        # Full clear the environment out and reset back to the original
        os.environ.clear()
        os.environ.update(original)


def create_trace(name='test.trace', service='test-service', trace_id=None, env=None):
    return Trace(name=name, service=service, trace_id=trace_id, env=env)


def random_traces(count, seed=0, **kwargs):
    """Generate ``count`` traces with distinct random 64-bit ids, reproducibly"""
    rng = random.Random(seed)
    ids = set()
    while len(ids) < count:
        ids.add(rng.getrandbits(64))
    return [create_trace(trace_id=trace_id, **kwargs) for trace_id in ids]
