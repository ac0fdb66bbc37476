from ..internal.logger import get_logger
from ..rules_config import parse_sampling_rules
from ..sampler import validate_sample_rate
from ..utils.formats import asfloat, get_env

log = get_logger(__name__)


class Config(object):
    """Configuration object that exposes the sampling settings read from the environment.

    Values are read from the environment each time they are accessed and validated
    then, so an invalid value is reported when a sampler is configured from it.
    Any attribute assigned on the instance takes precedence over the environment::

        >>> from ddsampling import config
        >>> config.sample_rate = 0.5
    """

    NO_RATE_LIMIT = -1

    def __init__(self):
        self._overrides = {}

    def _get(self, name, loader):
        if name in self._overrides:
            return self._overrides[name]
        return loader()

    def _set(self, name, value):
        log.debug('sampling setting %s set to %r', name, value)
        self._overrides[name] = value

    def reset(self):
        """Forget every value set in code, falling back to the environment"""
        self._overrides.clear()

    @property
    def sample_rate(self):
        """Rate of the default rule, ``DD_TRACE_SAMPLE_RATE``, ``None`` when unset"""
        def load():
            value = get_env('trace', 'sample_rate')
            if value is None:
                return None
            return validate_sample_rate(value)
        return self._get('sample_rate', load)

    @sample_rate.setter
    def sample_rate(self, value):
        self._set('sample_rate', None if value is None else validate_sample_rate(value))

    @property
    def rate_limit(self):
        """Traces kept per second across all rules, ``DD_TRACE_RATE_LIMIT``, negative means unlimited"""
        def load():
            return asfloat(get_env('trace', 'rate_limit', default=self.NO_RATE_LIMIT), 'DD_TRACE_RATE_LIMIT')
        return self._get('rate_limit', load)

    @rate_limit.setter
    def rate_limit(self, value):
        self._set('rate_limit', asfloat(value, 'rate_limit'))

    @property
    def sampling_rules(self):
        """Rules parsed from the JSON in ``DD_TRACE_SAMPLING_RULES``"""
        return self._get('sampling_rules', lambda: parse_sampling_rules(get_env('trace', 'sampling_rules')))

    @sampling_rules.setter
    def sampling_rules(self, value):
        if isinstance(value, str):
            value = parse_sampling_rules(value)
        self._set('sampling_rules', list(value))

    def __repr__(self):
        cls = self.__class__
        overrides = ', '.join(sorted(self._overrides.keys()))
        return '{}.{}({})'.format(cls.__module__, cls.__name__, overrides)
