"""The rule sampler decides the fate of every finished trace

It walks the configured rules in order, lets the first one matching the
trace decide, and falls back to a default sampler when none matches. The
decision, the rate it was made with and the mechanism that produced it are
written back onto the trace.
"""
import collections

from .constants import SAMPLING_LIMIT_DECISION, SAMPLING_RULE_DECISION
from .ext.mechanism import SamplingMechanism
from .ext.priority import AUTO_KEEP, AUTO_REJECT
from .internal.logger import get_logger
from .internal.rate_limiter import RateLimiter
from .rule import Rule, SimpleRule, log_matcher_fault
from .sampler import BaseSampler, RateByServiceSampler
from .settings import config as global_config
from .trace import SamplingDecision

log = get_logger(__name__)


# Everything an evaluation reads, swapped as a whole on reconfiguration
RuleSet = collections.namedtuple('RuleSet', ('rules', 'default_sampler'))


def find_matching_rule(rules, trace):
    """
    Return the first rule matching ``trace`` along with the faults of the rules checked before it

    Matchers which fail count as a non-match. No logging happens here, the
    faults are returned for the caller to report.

    :returns: ``(rule, faults)``, ``rule`` is ``None`` when no rule matched
    :rtype: :obj:`tuple`
    """
    faults = []
    for rule in rules:
        result = rule.try_match(trace)
        if result.matched:
            return rule, faults
        if result.fault is not None:
            faults.append(result.fault)
    return None, faults


class RuleSampler(BaseSampler):
    """
    Sampler applying a list of :class:`ddsampling.rule.Rule` to every trace

    .. code:: python

        sampler = RuleSampler(
            rules=[
                SimpleRule(name='GET /users', service='api', sample_rate=0.5),
            ],
            default_sample_rate=1.0,
        )
        decision = sampler.evaluate(trace)
    """
    __slots__ = ('_ruleset', 'limiter')

    NO_RATE_LIMIT = -1

    def __init__(self, rules=None, default_sample_rate=None, rate_limit=None, default_sampler=None):
        """
        Constructor for RuleSampler

        Every argument left to ``None`` is read from the global :data:`ddsampling.config`.

        :param rules: Rules to apply to every trace, in order, default no rules
        :type rules: :obj:`list` of :class:`ddsampling.rule.Rule`
        :param default_sample_rate: The sample rate to apply if no rules matched (default: ``None`` /
            Use :class:`ddsampling.sampler.RateByServiceSampler` only)
        :type default_sample_rate: float 0 <= X <= 1.0
        :param rate_limit: Global rate limit (traces per second) applied to the traces kept by a rule,
            (default: ``-1``, no limit)
        :type rate_limit: :obj:`int`
        :param default_sampler: The sampler to apply if no rules matched, takes precedence over
            ``default_sample_rate``
        :type default_sampler: :class:`ddsampling.sampler.BaseSampler`
        """
        if rules is None:
            rules = global_config.sampling_rules

        if rate_limit is None:
            rate_limit = global_config.rate_limit

        if default_sampler is None:
            if default_sample_rate is None:
                # If no sample rate was provided explicitly in code, try to load it from the configuration
                default_sample_rate = global_config.sample_rate

            # Default to the per service rates sent by the agent
            if default_sample_rate is None:
                default_sampler = RateByServiceSampler()
            else:
                default_sampler = SimpleRule(sample_rate=default_sample_rate)

        self._ruleset = RuleSet(self._validate_rules(rules), self._validate_default_sampler(default_sampler))
        self.limiter = RateLimiter(rate_limit)

        log.debug('initialized %r', self)

    @classmethod
    def from_config(cls, config):
        """
        Build a sampler from a :class:`ddsampling.settings.Config`

        :raises ValueError: if any of the configured values is invalid
        """
        return cls(
            rules=config.sampling_rules,
            default_sample_rate=config.sample_rate,
            rate_limit=config.rate_limit,
        )

    @staticmethod
    def _validate_rules(rules):
        rules = tuple(rules or ())
        for rule in rules:
            if not isinstance(rule, Rule):
                raise TypeError('Rule {!r} must be a sub-class of type ddsampling.rule.Rule'.format(rule))
        return rules

    @staticmethod
    def _validate_default_sampler(sampler):
        # DEV: A default rate is applied through a match-all `SimpleRule`
        if not isinstance(sampler, (BaseSampler, Rule)):
            raise TypeError(
                'Default sampler {!r} must be a BaseSampler or a Rule'.format(sampler)
            )
        return sampler

    @property
    def rules(self):
        return self._ruleset.rules

    @property
    def default_sampler(self):
        return self._ruleset.default_sampler

    @default_sampler.setter
    def default_sampler(self, sampler):
        self._ruleset = self._ruleset._replace(default_sampler=self._validate_default_sampler(sampler))

    def update_rules(self, rules, default_sampler=None):
        """
        Replace the rules, and optionally the default sampler, in one step

        Evaluations running concurrently keep using the previous rules until they complete.
        """
        if default_sampler is None:
            default_sampler = self.default_sampler
        self._ruleset = RuleSet(self._validate_rules(rules), self._validate_default_sampler(default_sampler))

    def update_rate_by_service_sample_rates(self, sample_rates):
        # Pass through the call to our RateByServiceSampler
        default_sampler = self.default_sampler
        if isinstance(default_sampler, RateByServiceSampler):
            default_sampler.update_rate_by_service_sample_rates(sample_rates)

    @property
    def sample_rate(self):
        return self.default_sampler.sample_rate

    def _decide(self, sampler, trace):
        try:
            return sampler.decide(trace)
        except Exception:
            log.error('Sampler %r failed on %r, dropping the trace', sampler, trace, exc_info=True)

        try:
            rate = float(sampler.sample_rate)
        except Exception:
            rate = 0.0
        return False, rate

    def _apply_limit(self, trace):
        # Negative rate limit disables rate limiting
        if self.limiter.rate_limit < 0:
            return True

        allowed = self.limiter.is_allowed()
        # DEV: Setting this allows us to properly compute metrics and debug the
        #      various sample rates that are getting applied to this trace
        trace.set_metric(SAMPLING_LIMIT_DECISION, self.limiter.effective_rate)
        return allowed

    def _evaluate(self, trace):
        ruleset = self._ruleset

        rule, faults = find_matching_rule(ruleset.rules, trace)
        for fault in faults:
            log_matcher_fault(fault)

        if rule is None:
            default_sampler = ruleset.default_sampler

            # The agent rates are not subject to the rate limit
            if isinstance(default_sampler, RateByServiceSampler):
                kept, rate = self._decide(default_sampler, trace)
                if default_sampler.has_agent_rates:
                    mechanism = SamplingMechanism.AGENT_RATE
                else:
                    mechanism = SamplingMechanism.DEFAULT
                return SamplingDecision(kept, rate, mechanism)

            rule = default_sampler

        if isinstance(rule, Rule):
            mechanism = SamplingMechanism.TRACE_SAMPLING_RULE
        else:
            mechanism = SamplingMechanism.DEFAULT

        kept, rate = self._decide(rule, trace)
        trace.set_metric(SAMPLING_RULE_DECISION, rate)

        # Ensure all kept traces adhere to the global rate limit
        if kept:
            kept = self._apply_limit(trace)

        return SamplingDecision(kept, rate, mechanism)

    def evaluate(self, trace):
        """
        Decide whether the provided trace should be kept or not, and record it on the trace

        Never raises: failing matchers count as non-matching, failing samplers drop the trace.

        :param trace: The finished trace
        :type trace: :class:`ddsampling.trace.Trace`
        :returns: The decision written on ``trace.sampling``
        :rtype: :class:`ddsampling.trace.SamplingDecision`
        """
        try:
            trace.clear_sampling()
            decision = self._evaluate(trace)
        except Exception:
            log.error('Failed to evaluate sampling rules for %r, dropping the trace', trace, exc_info=True)
            decision = SamplingDecision(False, 0.0, SamplingMechanism.DEFAULT)

        try:
            trace.sampling = decision
            trace.sampling_priority = AUTO_KEEP if decision.kept else AUTO_REJECT
        except Exception:
            log.error('Failed to record sampling decision %r on %r', decision, trace, exc_info=True)
        return decision

    def sample(self, trace):
        """
        Return whether the trace is kept, see :meth:`evaluate`

        :rtype: :obj:`bool`
        """
        return self.evaluate(trace).kept

    def decide(self, trace):
        decision = self.evaluate(trace)
        return decision.kept, decision.rate

    def __repr__(self):
        ruleset = self._ruleset
        return '{}(rules={!r}, default_sampler={!r}, rate_limit={!r})'.format(
            self.__class__.__name__, list(ruleset.rules), ruleset.default_sampler, self.limiter.rate_limit,
        )

    __str__ = __repr__
