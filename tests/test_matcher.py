import re
import threading

import pytest

from ddsampling.matcher import MATCH_ALL, Literal, Matcher, Pattern, Predicate, SimpleMatcher, to_specifier

from .utils import create_trace


def test_match_all():
    assert MATCH_ALL.match(create_trace()) is True
    assert MATCH_ALL.match(create_trace(name=None, service=None)) is True
    assert MATCH_ALL.accepts(None) is True
    assert isinstance(MATCH_ALL, Matcher)


def test_matcher_is_abstract():
    with pytest.raises(TypeError):
        Matcher()


@pytest.mark.parametrize(
    'value,expected_type',
    [
        (MATCH_ALL, type(MATCH_ALL)),
        ('test.trace', Literal),
        (None, Literal),
        (42, Literal),
        (re.compile(r'test'), Pattern),
        (lambda name: True, Predicate),
        (len, Predicate),
    ]
)
def test_to_specifier(value, expected_type):
    assert isinstance(to_specifier(value), expected_type)


def test_to_specifier_keeps_specifiers():
    specifier = Literal('test')
    assert to_specifier(specifier) is specifier


@pytest.mark.parametrize('value', [['a', 'b'], ('a',), {'name': 'a'}, {'a'}, frozenset()])
def test_to_specifier_malformed(value):
    with pytest.raises(TypeError):
        to_specifier(value)

    with pytest.raises(TypeError):
        SimpleMatcher(name=value)


@pytest.mark.parametrize(
    'name,pattern,expected',
    [
        ('test.trace', MATCH_ALL, True),
        # DEV: Having no rule and being `None` are different things
        ('test.trace', None, False),
        ('test.trace', 'test.trace', True),
        ('test.trace', 'test_trace', False),
        ('test.trace', re.compile(r'^test\.trace$'), True),
        ('test_trace', re.compile(r'^test.trace$'), True),
        ('test.trace', re.compile(r'^test_trace$'), False),
        # Patterns match anywhere in the value
        ('test.trace', re.compile(r'trace'), True),
        ('test.trace', re.compile(r'test\.trace|another\.trace'), True),
        ('another.trace', re.compile(r'test\.trace|another\.trace'), True),
        ('test.trace', lambda name: 'trace' in name, True),
        ('test.trace', lambda name: 'trace' not in name, False),
        # Truthy results are accepted
        ('test.trace', lambda name: name, True),
        ('', lambda name: name, False),
    ]
)
def test_simple_matcher_name(name, pattern, expected):
    matcher = SimpleMatcher(name=pattern)
    assert matcher.match(create_trace(name=name)) is expected, '{} -> {} -> {}'.format(matcher, name, expected)


@pytest.mark.parametrize(
    'service,pattern,expected',
    [
        ('my-service', MATCH_ALL, True),
        ('my-service', None, False),
        (None, None, True),
        (None, 'my-service', False),
        (None, re.compile(r'my-service'), False),
        ('my-service', 'my-service', True),
        ('my-service', 'my_service', False),
        ('my-service', re.compile(r'^my-'), True),
        ('my_service', re.compile(r'^my[_-]'), True),
        ('my-service', re.compile(r'^my_'), False),
        ('my-service', re.compile(r'-service$'), True),
        ('my-service', lambda service: 'service' in service, True),
        ('my-service', lambda service: 'service' not in service, False),
    ]
)
def test_simple_matcher_service(service, pattern, expected):
    matcher = SimpleMatcher(service=pattern)
    assert matcher.match(create_trace(service=service)) is expected, '{} -> {} -> {}'.format(
        matcher, service, expected,
    )


@pytest.mark.parametrize(
    'name,service,expected',
    [
        # All match
        ('test.trace', 'my-service', True),
        # Name doesn't match
        ('other.trace', 'my-service', False),
        # Service doesn't match
        ('test.trace', 'service-db', False),
        # Neither matches
        ('other.trace', 'service-db', False),
    ]
)
def test_simple_matcher_name_and_service(name, service, expected):
    matcher = SimpleMatcher(name='test.trace', service=re.compile(r'^my-'))
    assert matcher.match(create_trace(name=name, service=service)) is expected


def test_simple_matcher_defaults():
    matcher = SimpleMatcher()
    assert matcher.name is MATCH_ALL
    assert matcher.service is MATCH_ALL
    assert matcher.match(create_trace(name='anything', service='at-all')) is True


def test_simple_matcher_predicate_error_propagates():
    matcher = SimpleMatcher(name=lambda name: 1 / 0)
    with pytest.raises(ZeroDivisionError):
        matcher.match(create_trace())


def test_simple_matcher_short_circuits():
    calls = []

    def service(value):
        calls.append(value)
        return True

    matcher = SimpleMatcher(name='test.trace', service=service)
    assert matcher.match(create_trace(name='other.trace')) is False
    assert calls == []


def test_simple_matcher_does_not_mutate_trace():
    trace = create_trace(name='test.trace', service='my-service', trace_id=42)
    SimpleMatcher(name=re.compile('test'), service=lambda s: True).match(trace)

    assert trace.name == 'test.trace'
    assert trace.service == 'my-service'
    assert trace.trace_id == 42
    assert trace.sampling is None
    assert trace.metrics == {}


def test_simple_matcher_concurrent():
    matcher = SimpleMatcher(name=re.compile(r'^GET '), service='api')
    traces = [create_trace(name='GET /users', service='api'), create_trace(name='POST /orders', service='api')]
    results = []

    def worker():
        results.append([matcher.match(trace) for trace in traces for _ in range(1000)])

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    expected = [True] * 1000 + [False] * 1000
    assert results == [expected] * 4


def test_simple_matcher_repr():
    matcher = SimpleMatcher(name='test.trace', service=re.compile(r'-db$'))
    assert repr(matcher) == "SimpleMatcher(name=Literal('test.trace'), service=Pattern('-db$'))"
    assert repr(SimpleMatcher()) == 'SimpleMatcher(name=MATCH_ALL, service=MATCH_ALL)'
