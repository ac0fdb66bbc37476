import collections
import logging
import threading

from ..utils.formats import get_env


def get_logger(name):
    """
    Retrieve or create a ``RateLimitedLogger`` instance.

    This function mirrors the behavior of `logging.getLogger`.

    If no logger with the provided name has been fetched before then
    a new one is created.

    If a previous logger has been created then it is returned.

    DEV: We do not want to mess with `logging.setLoggerClass()`
         That will totally mess with the user's loggers, we want
         just our own, selective loggers to be rate limited

    :param name: The name of the logger to fetch or create
    :type name: str
    :return: The logger instance
    :rtype: ``RateLimitedLogger``
    """
    # DEV: `logging.Logger.manager` refers to the single root `logging.Manager` instance
    manager = logging.Logger.manager

    # If the logger does not exist yet, create it
    # DEV: `Manager.loggerDict` maps logger names to loggers, or to a `logging.PlaceHolder`
    #      when only children of that name were fetched so far
    existing = manager.loggerDict.get(name)
    if isinstance(existing, logging.Logger):
        return existing

    logger = RateLimitedLogger(name=name)
    manager.loggerDict[name] = logger

    # DEV: This mirrors `logging.Manager.getLogger`, without these calls our logger would
    #      not have an appropriate `Logger.parent` and could not use the root loggers handlers
    if isinstance(existing, logging.PlaceHolder) and hasattr(manager, "_fixupChildren"):
        manager._fixupChildren(existing, logger)
    if hasattr(manager, "_fixupParents"):
        manager._fixupParents(logger)

    return logger


class RateLimitedLogger(logging.Logger):
    """
    Custom rate limited logger used by ``ddsampling``

    Sampling runs once per finished trace, so a broken rule would
    otherwise log on every single trace. This logger lets through one
    record per name/level/pathname/lineno per time bucket.
    """

    # Named tuple used for keeping track of a log lines current time bucket and the number of log lines skipped
    LoggingBucket = collections.namedtuple("LoggingBucket", ("bucket", "skipped"))

    def __init__(self, *args, **kwargs):
        super(RateLimitedLogger, self).__init__(*args, **kwargs)

        # Dict to keep track of the current time bucket per name/level/pathname/lineno
        self.buckets = collections.defaultdict(lambda: RateLimitedLogger.LoggingBucket(0, 0))
        self._buckets_lock = threading.Lock()

        # Allow 1 log record per name/level/pathname/lineno every 60 seconds by default
        # Allow configuring via `DD_LOGGING_RATE_LIMIT`
        # DEV: `DD_LOGGING_RATE_LIMIT=0` means to disable all rate limiting
        self.rate_limit = int(get_env("logging", "rate_limit", default=60))

    def handle(self, record):
        """
        Function used to call the handlers for a log line.

        This implementation will first determine if this log line should
        be logged or rate limited, and then call the base ``logging.Logger.handle``
        function if it should be logged

        :param record: The log record being logged
        :type record: ``logging.LogRecord``
        """
        if not self.rate_limit:
            super(RateLimitedLogger, self).handle(record)
            return

        # DEV: current unix time / rate (e.g. 300 seconds) = time bucket
        #      int(1546615098.8404942 / 300) = 515538
        current_bucket = int(record.created / self.rate_limit)

        # Limit based on logger name, record level, filename, and line number
        #   ('ddsampling.rule_sampler', 40, '../site-packages/ddsampling/rule_sampler.py', 137)
        key = (record.name, record.levelno, record.pathname, record.lineno)

        with self._buckets_lock:
            logging_bucket = self.buckets[key]
            if logging_bucket.bucket == current_bucket:
                # DEV: `LoggingBucket` is a tuple which is immutable so recreate instead
                self.buckets[key] = RateLimitedLogger.LoggingBucket(logging_bucket.bucket, logging_bucket.skipped + 1)
                return

            self.buckets[key] = RateLimitedLogger.LoggingBucket(current_bucket, 0)

        # Append count of skipped messages if we have skipped some since our last logging
        if logging_bucket.skipped:
            record.msg = "{}, %s additional messages skipped".format(record.msg)
            record.args = tuple(record.args or ()) + (logging_bucket.skipped,)

        super(RateLimitedLogger, self).handle(record)
