import math
import os


def get_env(integration, variable, default=None):
    """Retrieves environment variables value for the given integration. It must be used
    for consistency between components:

    * the environment variable is built concatenating `integration` and `variable`
      arguments, upper-cased and prefixed with `DD_`
    * empty values are treated as unset
    * return `default` otherwise

    >>> get_env('trace', 'sample_rate')  # reads DD_TRACE_SAMPLE_RATE
    """
    key = "{}_{}".format(integration, variable).upper()
    value = os.getenv("DD_{}".format(key))
    return value if value else default


def asfloat(value, name):
    """Convert a configuration value to ``float``, naming the setting on failure. NaN is refused."""
    try:
        result = float(value)
    except (TypeError, ValueError):
        raise ValueError("{} must be a number, got {!r}".format(name, value))

    if math.isnan(result):
        raise ValueError("{} must be a number, got {!r}".format(name, value))
    return result
