import collections
import traceback

from .internal.logger import get_logger
from .matcher import MATCH_ALL, Matcher, SimpleMatcher
from .sampler import BaseSampler, RateLimitingSampler, RateSampler

log = get_logger(__name__)


# Diagnostic for a matcher that raised instead of answering
MatcherFault = collections.namedtuple('MatcherFault', ('rule', 'message', 'origin'))

# Outcome of matching a trace against a rule.
# `matched` is `True`/`False`, or `None` when the matcher failed, in which case `fault` describes why.
MatchResult = collections.namedtuple('MatchResult', ('matched', 'fault'))


def _origin(exc):
    frames = traceback.extract_tb(exc.__traceback__)
    if not frames:
        return 'unknown'
    frame = frames[-1]
    return '{}:{} in {}'.format(frame.filename, frame.lineno, frame.name)


def log_matcher_fault(fault):
    log.error('Matcher failed for %r. Cause: %s Source: %s', fault.rule, fault.message, fault.origin)


class Rule(object):
    """
    Sampling rule that dictates if a trace matches
    a specific criteria and what sampling strategy to
    apply in case of a positive match.
    """
    __slots__ = ('matcher', 'sampler')

    def __init__(self, matcher, sampler):
        """
        :param matcher: A matcher to verify trace conformity against
        :type matcher: :class:`ddsampling.matcher.Matcher`
        :param sampler: A sampler to be consulted on a positive match
        :type sampler: :class:`ddsampling.sampler.BaseSampler`
        """
        if not isinstance(matcher, Matcher):
            raise TypeError('Rule matcher {!r} must be a sub-class of type ddsampling.matcher.Matcher'.format(matcher))
        if not isinstance(sampler, BaseSampler):
            raise TypeError(
                'Rule sampler {!r} must be a sub-class of type ddsampling.sampler.BaseSampler'.format(sampler)
            )

        self.matcher = matcher
        self.sampler = sampler

    def try_match(self, trace):
        """
        Evaluate if the provided trace conforms to the matcher, without logging

        :param trace: The trace to match against
        :type trace: :class:`ddsampling.trace.Trace`
        :rtype: :class:`MatchResult`
        """
        try:
            return MatchResult(bool(self.matcher.match(trace)), None)
        except Exception as e:
            return MatchResult(None, MatcherFault(self, '{}: {}'.format(e.__class__.__name__, e), _origin(e)))

    def match(self, trace):
        """
        Evaluate if the provided trace conforms to the matcher

        :returns: whether this rule applies to the trace, or ``None`` if the matcher failed
        :rtype: :obj:`bool` or ``None``
        """
        result = self.try_match(trace)
        if result.fault is not None:
            log_matcher_fault(result.fault)
        return result.matched

    def sample(self, trace):
        return self.sampler.sample(trace)

    @property
    def sample_rate(self):
        return self.sampler.sample_rate

    def decide(self, trace):
        return self.sampler.decide(trace)

    def __repr__(self):
        return '{}(matcher={!r}, sampler={!r})'.format(self.__class__.__name__, self.matcher, self.sampler)

    __str__ = __repr__


class SimpleRule(Rule):
    """
    A :class:`Rule` that matches a trace based on
    trace name and/or service name and
    applies a fixed sampling to matching traces.

    .. code:: python

        RuleSampler([
            # Sample no healthcheck traces
            SimpleRule(name='flask.request', sample_rate=0.0),

            # Sample all services ending in `-db` based on a regular expression
            SimpleRule(service=re.compile('-db$'), sample_rate=0.5),

            # Sample based on service name using custom function
            SimpleRule(service=lambda service: 'my-app' in service, sample_rate=0.75),

            # Keep at most 10 traces per second of the `api` service
            SimpleRule(service='api', max_per_second=10),
        ])
    """
    __slots__ = ()

    def __init__(self, name=MATCH_ALL, service=MATCH_ALL, sample_rate=1.0, max_per_second=None):
        """
        :param name: Matcher for the trace name, defaults to always match
        :type name: :obj:`str` to compare, :class:`re.Pattern` to search, or :obj:`function` to evaluate
        :param service: Matcher for the service name, defaults to always match
        :type service: :obj:`str` to compare, :class:`re.Pattern` to search, or :obj:`function` to evaluate
        :param sample_rate: Sampling rate between ``[0, 1]``, ``0.0`` drops every matching trace
        :type sample_rate: :obj:`float`
        :param max_per_second: Optional cap of matching traces kept per second
        :type max_per_second: :obj:`int` or :obj:`float`
        """
        if max_per_second is None:
            sampler = RateSampler(sample_rate)
        else:
            sampler = RateLimitingSampler(max_per_second, sample_rate=sample_rate)

        super(SimpleRule, self).__init__(SimpleMatcher(name=name, service=service), sampler)

    def __repr__(self):
        return '{}(name={!r}, service={!r}, sampler={!r})'.format(
            self.__class__.__name__, self.matcher.name, self.matcher.service, self.sampler,
        )

    __str__ = __repr__
