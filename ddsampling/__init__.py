from importlib import metadata

from .matcher import MATCH_ALL, Matcher, SimpleMatcher
from .rule import Rule, SimpleRule
from .rule_sampler import RuleSampler
from .sampler import AllSampler, RateByServiceSampler, RateLimitingSampler, RateSampler
from .settings import config
from .trace import SamplingDecision, Trace


try:
    __version__ = metadata.version('ddsampling')
except metadata.PackageNotFoundError:
    # package is not installed
    __version__ = None


__all__ = [
    'AllSampler',
    'MATCH_ALL',
    'Matcher',
    'RateByServiceSampler',
    'RateLimitingSampler',
    'RateSampler',
    'Rule',
    'RuleSampler',
    'SamplingDecision',
    'SimpleMatcher',
    'SimpleRule',
    'Trace',
    'config',
]
