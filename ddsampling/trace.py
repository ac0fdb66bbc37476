import collections
import random

from .constants import SAMPLING_DECISION_KEYS, SAMPLING_PRIORITY_KEY


# The annotation written onto a trace by the sampler
SamplingDecision = collections.namedtuple('SamplingDecision', ('kept', 'rate', 'mechanism'))


def new_trace_id():
    return random.getrandbits(64)


class Trace(object):
    """
    In-memory handle of a finished trace, as handed to the sampler by the tracer.

    The sampler reads ``name``, ``service``, ``env`` and ``trace_id``, and writes
    ``sampling``, ``sampling_priority`` and the sampling decision metrics.
    """

    __slots__ = [
        'name',
        'service',
        'env',
        'trace_id',
        'sampling',
        'metrics',
    ]

    def __init__(self, name, service=None, trace_id=None, env=None):
        """
        Create a new trace handle.

        :param str name: the name of the root operation, e.g. ``'flask.request'``
        :param str service: the service the trace belongs to
        :param int trace_id: the id of the trace, a random 64-bit id is generated if omitted
        :param str env: the environment the service runs in
        """
        self.name = name
        self.service = service
        self.env = env
        self.trace_id = trace_id if trace_id is not None else new_trace_id()

        self.sampling = None
        self.metrics = {}

    @property
    def sampled(self):
        """Whether the last evaluation kept this trace, ``None`` if it was never evaluated"""
        if self.sampling is None:
            return None
        return self.sampling.kept

    @property
    def sampling_priority(self):
        priority = self.metrics.get(SAMPLING_PRIORITY_KEY)
        return int(priority) if priority is not None else None

    @sampling_priority.setter
    def sampling_priority(self, value):
        if value is None:
            self.metrics.pop(SAMPLING_PRIORITY_KEY, None)
        else:
            self.metrics[SAMPLING_PRIORITY_KEY] = value

    def set_metric(self, key, value):
        try:
            value = float(value)
        except (TypeError, ValueError):
            raise ValueError('metric {} must be numeric, got {!r}'.format(key, value))
        self.metrics[key] = value

    def get_metric(self, key):
        return self.metrics.get(key)

    def clear_sampling(self):
        """Forget any previous sampling annotation so a new evaluation starts clean"""
        self.sampling = None
        self.sampling_priority = None
        for key in SAMPLING_DECISION_KEYS:
            self.metrics.pop(key, None)

    def __repr__(self):
        return '<Trace(id=%s,name=%s,service=%s)>' % (
            self.trace_id,
            self.name,
            self.service,
        )
