"""Matchers decide whether a trace conforms to a sampling rule

A matcher only reads the trace it is given; it keeps no state besides its
configuration, so a single instance is safely shared by every thread.
"""
import abc
import re


pattern_type = type(re.compile(''))


class Matcher(abc.ABC):
    __slots__ = ()

    @abc.abstractmethod
    def match(self, trace):
        """
        Return whether the trace conforms to this matcher

        :param trace: The trace to match against
        :type trace: :class:`ddsampling.trace.Trace`
        :rtype: :obj:`bool`
        """


class Specifier(abc.ABC):
    """Accepts or refuses a single value of a trace, e.g. its name"""
    __slots__ = ()

    @abc.abstractmethod
    def accepts(self, value):
        pass


class MatchAll(Matcher, Specifier):
    """Matches any trace, and accepts any value when used as a specifier"""
    __slots__ = ()

    def match(self, trace):
        return True

    def accepts(self, value):
        return True

    def __repr__(self):
        return 'MATCH_ALL'


MATCH_ALL = MatchAll()


class Literal(Specifier):
    """Accepts values equal to the configured one"""
    __slots__ = ('value',)

    def __init__(self, value):
        self.value = value

    def accepts(self, value):
        return value == self.value

    def __repr__(self):
        return 'Literal({!r})'.format(self.value)


class Pattern(Specifier):
    """Accepts values containing a match for the configured regular expression"""
    __slots__ = ('pattern',)

    def __init__(self, pattern):
        if not isinstance(pattern, pattern_type):
            pattern = re.compile(pattern)
        self.pattern = pattern

    def accepts(self, value):
        # DEV: Having no value is not the same as an empty one, `None` never matches a pattern
        if value is None:
            return False
        return self.pattern.search(str(value)) is not None

    def __repr__(self):
        return 'Pattern({!r})'.format(self.pattern.pattern)


class Predicate(Specifier):
    """Accepts values for which the configured function returns a truthy result

    Exceptions raised by the function are not caught here, the rule owning
    the matcher turns them into a diagnostic.
    """
    __slots__ = ('function',)

    def __init__(self, function):
        self.function = function

    def accepts(self, value):
        return bool(self.function(value))

    def __repr__(self):
        return 'Predicate({!r})'.format(self.function)


def to_specifier(value):
    """
    Build the :class:`Specifier` for a matcher argument

    * :data:`MATCH_ALL` (or any other specifier) is used as is
    * a compiled regular expression becomes a :class:`Pattern`
    * a callable becomes a :class:`Predicate`
    * anything else is compared for equality with a :class:`Literal`

    :raises TypeError: for container values, which cannot describe a single name or service
    """
    if isinstance(value, Specifier):
        return value
    if isinstance(value, pattern_type):
        return Pattern(value)
    if callable(value):
        return Predicate(value)
    if isinstance(value, (dict, list, tuple, set, frozenset)):
        raise TypeError('Matcher value {!r} must be a string, a regular expression or a callable'.format(value))
    return Literal(value)


class SimpleMatcher(Matcher):
    """
    Matches a trace on its name and/or its service

    .. code:: python

        # Any trace of the `api` service
        SimpleMatcher(service='api')

        # Any request trace of a service whose name ends in `-db`
        SimpleMatcher(name=re.compile(r'\\.request$'), service=re.compile(r'-db$'))

        # Custom logic
        SimpleMatcher(name=lambda name: 'healthcheck' in name)

    Both the name and the service must be accepted for the trace to match,
    an omitted argument accepts any value.
    """
    __slots__ = ('name', 'service')

    def __init__(self, name=MATCH_ALL, service=MATCH_ALL):
        self.name = to_specifier(name)
        self.service = to_specifier(service)

    def match(self, trace):
        return self.name.accepts(trace.name) and self.service.accepts(trace.service)

    def __repr__(self):
        return '{}(name={!r}, service={!r})'.format(self.__class__.__name__, self.name, self.service)

    __str__ = __repr__
