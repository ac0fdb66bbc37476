"""
Identifiers of what produced a sampling decision, reported with every decision for diagnostics.
"""
import enum


class SamplingMechanism(enum.IntEnum):
    # Built-in fallback: no rule matched and no agent rates are known yet
    DEFAULT = 0
    # Per-service rates fed back by the agent
    AGENT_RATE = 1
    # A configured sampling rule, including a configured default rate
    TRACE_SAMPLING_RULE = 3
