import mock
import pytest

from ddsampling.matcher import MATCH_ALL, Literal
from ddsampling.rule import SimpleRule
from ddsampling.rules_config import parse_sampling_rules
from ddsampling.sampler import RateLimitingSampler, RateSampler


@pytest.mark.parametrize('value', [None, '', '[]'])
def test_parse_no_rules(value):
    assert parse_sampling_rules(value) == []


def test_parse_rules():
    rules = parse_sampling_rules(
        '[{"service": "api", "name": "GET /users", "sample_rate": 0.5},'
        ' {"service": "worker", "max_per_second": 10},'
        ' {"sample_rate": 0}]'
    )
    assert len(rules) == 3
    assert all(isinstance(rule, SimpleRule) for rule in rules)

    # Order is preserved
    users, worker, catch_all = rules

    assert isinstance(users.matcher.name, Literal)
    assert users.matcher.name.value == 'GET /users'
    assert users.matcher.service.value == 'api'
    assert isinstance(users.sampler, RateSampler)
    assert users.sample_rate == 0.5

    assert worker.matcher.name is MATCH_ALL
    assert worker.matcher.service.value == 'worker'
    assert isinstance(worker.sampler, RateLimitingSampler)
    assert worker.sampler.max_per_second == 10
    assert worker.sample_rate == 1.0

    assert catch_all.matcher.name is MATCH_ALL
    assert catch_all.matcher.service is MATCH_ALL
    assert catch_all.sample_rate == 0.0


def test_parse_rules_logs():
    with mock.patch('ddsampling.rules_config.log') as mock_log:
        rules = parse_sampling_rules('[{"service": "api"}]')
    mock_log.debug.assert_called_once_with('parsed %d sampling rules: %r', 1, rules)


@pytest.mark.parametrize(
    'value,message',
    [
        ('not json', 'not valid JSON'),
        ('{"service": "api"}', 'must be a JSON array'),
        ('["api"]', 'Sampling rule #0 must be a JSON object'),
        ('[{}, {"resource": "GET /"}]', 'Sampling rule #1 has unknown keys: resource'),
        ('[{"service": 1}]', 'Sampling rule #0 service must be a string'),
        ('[{"name": null}]', 'Sampling rule #0 name must be a string'),
        ('[{"sample_rate": "0.5"}]', 'Sampling rule #0 sample_rate must be a number'),
        ('[{"sample_rate": true}]', 'Sampling rule #0 sample_rate must be a number'),
        ('[{"sample_rate": null}]', 'Sampling rule #0 sample_rate must be a number'),
        ('[{"sample_rate": 1.5}]', 'Sampling rule #0 is invalid'),
        ('[{"sample_rate": -0.5}]', 'Sampling rule #0 is invalid'),
        ('[{"max_per_second": "10"}]', 'Sampling rule #0 max_per_second must be a number'),
        ('[{"max_per_second": 0}]', 'Sampling rule #0 is invalid'),
    ]
)
def test_parse_invalid_rules(value, message):
    with pytest.raises(ValueError) as exc_info:
        parse_sampling_rules(value)
    assert message in str(exc_info.value)
