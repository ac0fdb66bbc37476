"""
Priority is a hint given to the backend so that it knows which traces to reject or kept.

The rule sampler writes ``AUTO_KEEP`` or ``AUTO_REJECT`` next to every decision;
the ``USER_*`` values are reserved for traces whose fate was forced by the application.
"""

# Use this to explicitly inform the backend that a trace should be rejected and not stored.
USER_REJECT = -1
# Used by the builtin sampler to inform the backend that a trace should be rejected and not stored.
AUTO_REJECT = 0
# Used by the builtin sampler to inform the backend that a trace should be kept and stored.
AUTO_KEEP = 1
# Use this to explicitly inform the backend that a trace should be kept and stored.
USER_KEEP = 2
