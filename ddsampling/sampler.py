"""Samplers make the keep/drop decision for a trace

Any `kept = False` trace won't be exported, and can be discarded by the tracer.

Every sampler exposes ``sample(trace)``, the ``sample_rate`` it applies and
``decide(trace)``, which returns the decision together with the rate it was
made with, read from a single configuration snapshot.
"""
import abc
import collections

from .constants import KNUTH_FACTOR, MAX_TRACE_ID
from .constants import SAMPLING_AGENT_DECISION, SAMPLING_LIMIT_DECISION
from .internal.logger import get_logger
from .internal.rate_limiter import RateLimiter

log = get_logger(__name__)

DEFAULT_SAMPLE_RATE = 1.0


def validate_sample_rate(sample_rate):
    """
    Convert ``sample_rate`` to a float and make sure it is usable as a sampling rate

    :param sample_rate: the rate, as a number or a numeric string
    :returns: the rate as a :obj:`float`
    :raises ValueError: if the rate is not numeric or outside of ``[0.0, 1.0]``
    :raises TypeError: if the rate is neither a number nor a string
    """
    if isinstance(sample_rate, bool):
        raise TypeError('sample_rate must be a number, got {!r}'.format(sample_rate))

    try:
        rate = float(sample_rate)
    except ValueError:
        raise ValueError('sample_rate must be a number, got {!r}'.format(sample_rate))
    except TypeError:
        raise TypeError('sample_rate must be a number, got {!r}'.format(sample_rate))

    # DEV: NaN fails both comparisons, so it is rejected too
    if not 0.0 <= rate <= 1.0:
        raise ValueError(
            'sample_rate={!r} must be greater than or equal to 0.0 and less than or equal to 1.0'.format(sample_rate)
        )
    return rate


class BaseSampler(abc.ABC):
    __slots__ = ()

    @abc.abstractmethod
    def sample(self, trace):
        pass

    @property
    @abc.abstractmethod
    def sample_rate(self):
        pass

    def decide(self, trace):
        """
        Return the decision for ``trace`` along with the rate it was made with

        :returns: ``(kept, sample_rate)``
        :rtype: :obj:`tuple`
        """
        return self.sample(trace), self.sample_rate


class AllSampler(BaseSampler):
    """Sampler sampling all the traces"""
    __slots__ = ()

    def sample(self, trace):
        return True

    @property
    def sample_rate(self):
        return 1.0

    def __repr__(self):
        return '{}()'.format(self.__class__.__name__)


# The rate and its threshold are always published together
_RateState = collections.namedtuple('_RateState', ('rate', 'threshold'))


class RateSampler(BaseSampler):
    """Sampler based on a rate

    Keep (100 * `sample_rate`)% of the traces.

    The decision is a function of the trace id, not a random draw: the same
    trace id always gets the same decision for a given rate, and over many
    distinct ids the kept fraction converges to the rate.

    ``sample_rate=None`` means the rate was not configured and defaults to 100%.
    A rate of ``0.0`` is a valid rate and drops every trace.
    """
    __slots__ = ('_state',)

    def __init__(self, sample_rate=None):
        if sample_rate is None:
            sample_rate = DEFAULT_SAMPLE_RATE
        self.set_sample_rate(sample_rate)

        log.debug('initialized RateSampler, sample %s%% of traces', 100 * self.sample_rate)

    def set_sample_rate(self, sample_rate):
        rate = validate_sample_rate(sample_rate)
        self._state = _RateState(rate, rate * MAX_TRACE_ID)

    @property
    def sample_rate(self):
        return self._state.rate

    @sample_rate.setter
    def sample_rate(self, sample_rate):
        self.set_sample_rate(sample_rate)

    @staticmethod
    def _sample(state, trace):
        if state.rate == 1:
            return True
        elif state.rate == 0:
            return False

        return ((trace.trace_id * KNUTH_FACTOR) % MAX_TRACE_ID) < state.threshold

    def sample(self, trace):
        return self._sample(self._state, trace)

    def decide(self, trace):
        state = self._state
        return self._sample(state, trace), state.rate

    def __repr__(self):
        return '{}(sample_rate={!r})'.format(self.__class__.__name__, self.sample_rate)

    __str__ = __repr__


class RateLimitingSampler(BaseSampler):
    """Sampler based on a rate, capped to a maximum number of kept traces per second

    Traces are first sampled by rate, the ones kept are then let through a
    token bucket allowing at most ``max_per_second`` traces per second,
    regardless of how much traffic comes in.
    """
    __slots__ = ('_rate_sampler', 'limiter', 'max_per_second')

    def __init__(self, max_per_second, sample_rate=None):
        """
        :param max_per_second: Maximum number of traces kept per second
        :type max_per_second: :obj:`int` or :obj:`float` greater than 0
        :param sample_rate: The rate applied before the limit (default: ``1.0``)
        :type sample_rate: :obj:`float` 0 <= X <= 1.0
        """
        if isinstance(max_per_second, bool) or not isinstance(max_per_second, (int, float)):
            raise TypeError('max_per_second must be a number, got {!r}'.format(max_per_second))
        # DEV: `not x > 0` also rejects NaN
        if not max_per_second > 0:
            raise ValueError('max_per_second={!r} must be greater than 0'.format(max_per_second))

        self.max_per_second = max_per_second
        self._rate_sampler = RateSampler(sample_rate)
        self.limiter = RateLimiter(max_per_second)

    def set_sample_rate(self, sample_rate):
        self._rate_sampler.set_sample_rate(sample_rate)

    @property
    def sample_rate(self):
        return self._rate_sampler.sample_rate

    @sample_rate.setter
    def sample_rate(self, sample_rate):
        self.set_sample_rate(sample_rate)

    def sample(self, trace):
        return self.decide(trace)[0]

    def decide(self, trace):
        sampled, rate = self._rate_sampler.decide(trace)
        if not sampled:
            return False, rate

        allowed = self.limiter.is_allowed()
        # DEV: Record the limiter rate whether it allowed the trace or not, so the backend
        #      can account for the traces the limiter dropped
        trace.set_metric(SAMPLING_LIMIT_DECISION, self.limiter.effective_rate)
        return allowed, rate

    def __repr__(self):
        return '{}(max_per_second={!r}, sample_rate={!r})'.format(
            self.__class__.__name__, self.max_per_second, self.sample_rate,
        )

    __str__ = __repr__


class RateByServiceSampler(BaseSampler):
    """Sampler based on a rate, by service

    Keep (100 * `sample_rate`)% of the traces.
    The sample rate is kept independently for each service/env tuple, and is
    updated from the rates the agent sends back.
    """
    __slots__ = ('_by_service_samplers', '_default_rate', 'has_agent_rates')

    @staticmethod
    def _key(service=None, env=None):
        """Compute a key with the same format used by the Datadog agent API."""
        service = service or ''
        env = env or ''
        return 'service:' + service + ',env:' + env

    def __init__(self, sample_rate=None):
        self._default_rate = DEFAULT_SAMPLE_RATE if sample_rate is None else validate_sample_rate(sample_rate)
        self._by_service_samplers = self._get_new_by_service_sampler()
        self.has_agent_rates = False

    def _get_new_by_service_sampler(self):
        return {
            self._default_key: RateSampler(self._default_rate)
        }

    @property
    def sample_rate(self):
        return self._by_service_samplers[self._default_key].sample_rate

    def set_sample_rate(self, sample_rate, service='', env=''):
        samplers = dict(self._by_service_samplers)
        samplers[self._key(service, env)] = RateSampler(sample_rate)
        self._by_service_samplers = samplers

    def _sampler_for(self, trace):
        samplers = self._by_service_samplers
        return samplers.get(self._key(trace.service, trace.env), samplers[self._default_key])

    def sample(self, trace):
        return self.decide(trace)[0]

    def decide(self, trace):
        kept, rate = self._sampler_for(trace).decide(trace)
        trace.set_metric(SAMPLING_AGENT_DECISION, rate)
        return kept, rate

    def update_rate_by_service_sample_rates(self, rate_by_service):
        """
        Replace all per service rates with the ones received from the agent

        :param rate_by_service: rates keyed by ``'service:<service>,env:<env>'``
        :type rate_by_service: :obj:`dict`
        """
        new_by_service_samplers = self._get_new_by_service_sampler()
        for key, sample_rate in rate_by_service.items():
            new_by_service_samplers[key] = RateSampler(sample_rate)

        self._by_service_samplers = new_by_service_samplers
        self.has_agent_rates = True

    def __repr__(self):
        return '{}(sample_rate={!r})'.format(self.__class__.__name__, self.sample_rate)


# Default key for service with no specific rate
RateByServiceSampler._default_key = RateByServiceSampler._key()
