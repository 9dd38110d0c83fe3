"""
Thresholds for the performance benchmarks
"""

import pytest


@pytest.fixture(scope="session")
def performance_config():
    return {
        "min_throughput_primitive": 20000,  # renders/sec for scalars
        "min_throughput_memberwise": 2000,  # renders/sec for small objects
        "min_throughput_lazy_unrendered": 20000,  # filtered records/sec
        "max_time_overshoot_ms": 100,  # slack over the time budget
    }
