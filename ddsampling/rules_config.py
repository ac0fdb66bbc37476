"""Parsing of sampling rules given as JSON, e.g. through ``DD_TRACE_SAMPLING_RULES``

.. code:: bash

    DD_TRACE_SAMPLING_RULES='[{"service": "api", "name": "GET /users", "sample_rate": 0.5},
                              {"service": "worker", "max_per_second": 10}]'

Each rule may define ``name`` and ``service`` (exact match, omitted means any),
``sample_rate`` (default ``1.0``) and ``max_per_second``.
"""
import json
import numbers

from .internal.logger import get_logger
from .matcher import MATCH_ALL
from .rule import SimpleRule

log = get_logger(__name__)

RULE_KEYS = frozenset(('name', 'service', 'sample_rate', 'max_per_second'))


def _is_number(value):
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _parse_rule(index, raw):
    if not isinstance(raw, dict):
        raise ValueError('Sampling rule #{} must be a JSON object, got {!r}'.format(index, raw))

    unknown = set(raw) - RULE_KEYS
    if unknown:
        raise ValueError('Sampling rule #{} has unknown keys: {}'.format(index, ', '.join(sorted(unknown))))

    kwargs = {}
    for key in ('name', 'service'):
        if key not in raw:
            kwargs[key] = MATCH_ALL
        elif isinstance(raw[key], str):
            kwargs[key] = raw[key]
        else:
            raise ValueError('Sampling rule #{} {} must be a string, got {!r}'.format(index, key, raw[key]))

    for key in ('sample_rate', 'max_per_second'):
        if key in raw and not _is_number(raw[key]):
            raise ValueError('Sampling rule #{} {} must be a number, got {!r}'.format(index, key, raw[key]))

    kwargs['sample_rate'] = raw.get('sample_rate', 1.0)
    kwargs['max_per_second'] = raw.get('max_per_second')
    try:
        return SimpleRule(**kwargs)
    except (TypeError, ValueError) as e:
        raise ValueError('Sampling rule #{} is invalid: {}'.format(index, e))


def parse_sampling_rules(value):
    """
    Build the list of :class:`ddsampling.rule.SimpleRule` described by a JSON document

    :param value: The JSON document, ``None`` or an empty string mean no rules
    :type value: :obj:`str`
    :rtype: :obj:`list` of :class:`ddsampling.rule.SimpleRule`
    :raises ValueError: if the document is not a valid list of rules
    """
    if not value:
        return []

    try:
        raw_rules = json.loads(value)
    except ValueError as e:
        raise ValueError('Sampling rules are not valid JSON: {}'.format(e))

    if not isinstance(raw_rules, list):
        raise ValueError('Sampling rules must be a JSON array, got {!r}'.format(raw_rules))

    rules = [_parse_rule(index, raw) for index, raw in enumerate(raw_rules)]
    log.debug('parsed %d sampling rules: %r', len(rules), rules)
    return rules
