from setuptools import setup, find_packages


long_description = """
# ddsampling

`ddsampling` decides which finished traces a Datadog tracer keeps.  Traces are
matched against an ordered list of sampling rules, the first matching rule
applies its sample rate, and traces matching no rule fall back to a default
sampler, usually driven by the per service rates sent back by the agent.

## Getting Started

```python
from ddsampling import RuleSampler, SimpleRule

sampler = RuleSampler(
    rules=[SimpleRule(name='GET /users', service='api', sample_rate=0.5)],
    default_sample_rate=1.0,
)
decision = sampler.evaluate(trace)
```

Rules can also be configured with the `DD_TRACE_SAMPLING_RULES`,
`DD_TRACE_SAMPLE_RATE` and `DD_TRACE_RATE_LIMIT` environment variables.
"""

install_requires = []

setup(
    name="ddsampling",
    version="0.1.0",
    description="Datadog trace sampling rules",
    url="https://github.com/DataDog/dd-trace-py",
    author="Datadog, Inc.",
    author_email="dev@datadoghq.com",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="BSD",
    packages=find_packages(exclude=["tests*"]),
    python_requires=">=3.6",
    install_requires=install_requires,
    extras_require={
        # pip install ddsampling[test]
        "test": ["pytest", "mock"],
    },
    # plugin tox
    tests_require=["tox", "flake8"],
    classifiers=[
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.6",
        "Programming Language :: Python :: 3.7",
        "Programming Language :: Python :: 3.8",
    ],
)
