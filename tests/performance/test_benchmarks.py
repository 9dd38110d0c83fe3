"""
Performance tests and benchmarks for rendering
Run with: pytest tests/performance/ -m performance
"""

import io
import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import List

import pytest

from structured_stringify import (
    StringifyArgsFilter,
    StringifyConfig,
    StringifyContextFactory,
    get_stringify_stats,
    reset_stringify_stats,
)


@dataclass
class LineItem:
    sku: str
    quantity: int
    price: float


@dataclass
class Order:
    order_id: int
    customer: str
    items: List[LineItem] = field(default_factory=list)


def make_order(i: int) -> Order:
    return Order(i, f"customer-{i}", [LineItem(f"sku-{j}", j, j * 1.5) for j in range(3)])


def unbounded_factory() -> StringifyContextFactory:
    return StringifyContextFactory(StringifyConfig(max_time=None))


def measure(iterations, action):
    start_time = time.perf_counter()
    for i in range(iterations):
        action(i)
    duration = time.perf_counter() - start_time
    return duration, iterations / duration


@pytest.mark.performance
class TestRenderPerformance:
    """Throughput of single-threaded rendering"""

    def test_primitive_throughput(self, performance_config):
        factory = unbounded_factory()
        iterations = 20000

        duration, throughput = measure(iterations, lambda i: factory.stringify(i))

        print(f"\nPrimitive Rendering Performance:")
        print(f"  Iterations: {iterations:,}")
        print(f"  Duration: {duration:.3f}s")
        print(f"  Throughput: {throughput:,.0f} renders/sec")

        assert throughput >= performance_config["min_throughput_primitive"]

    def test_memberwise_throughput(self, performance_config):
        factory = unbounded_factory()
        orders = [make_order(i) for i in range(100)]
        iterations = 5000

        duration, throughput = measure(iterations, lambda i: factory.stringify(orders[i % 100]))

        print(f"\nMemberwise Rendering Performance:")
        print(f"  Iterations: {iterations:,}")
        print(f"  Duration: {duration:.3f}s")
        print(f"  Throughput: {throughput:,.0f} renders/sec")

        assert throughput >= performance_config["min_throughput_memberwise"]

    def test_render_plan_is_built_once(self, caplog):
        factory = unbounded_factory()
        with caplog.at_level(logging.DEBUG, logger="structured_stringify.stringifiers.reflection"):
            for i in range(50):
                factory.stringify(make_order(i))

        plans = [r for r in caplog.records if "Built render plan" in r.message]
        # One plan for Order, one for LineItem
        assert len(plans) == 2


@pytest.mark.performance
class TestBudgets:
    """Renders stay bounded whatever the input size"""

    def test_time_budget_bounds_large_inputs(self, performance_config):
        factory = StringifyContextFactory(
            StringifyConfig(
                max_time=0.02,
                max_total_length=None,
                max_collection_item_count=None,
                max_depth=None,
            )
        )
        huge = [make_order(i) for i in range(20000)]

        start_time = time.perf_counter()
        result = factory.stringify(huge)
        elapsed_ms = (time.perf_counter() - start_time) * 1000

        print(f"\nBounded Rendering:")
        print(f"  Elapsed: {elapsed_ms:.1f}ms")
        print(f"  Output length: {len(result):,}")

        assert result.endswith("…]")
        assert elapsed_ms <= 20 + performance_config["max_time_overshoot_ms"]

    def test_total_length_bounds_output(self):
        factory = StringifyContextFactory(
            StringifyConfig(max_time=None, max_total_length=300, max_collection_item_count=None)
        )
        result = factory.stringify([make_order(i) for i in range(1000)])
        assert len(result) <= 300


@pytest.mark.performance
class TestLoggingOverhead:
    def test_filtered_records_are_cheap_when_not_emitted(self, performance_config):
        logger = logging.getLogger("perf_stringify")
        logger.handlers.clear()
        logger.addFilter(StringifyArgsFilter(factory=unbounded_factory()))
        stream = io.StringIO()
        logger.addHandler(logging.StreamHandler(stream))
        logger.setLevel(logging.INFO)
        logger.propagate = False

        # Records pass the logger filter; the handler level keeps them unformatted
        logger.handlers[0].setLevel(logging.ERROR)
        order = make_order(1)
        iterations = 20000

        try:
            duration, throughput = measure(iterations, lambda i: logger.info("order %s", order))
        finally:
            logger.handlers.clear()
            logger.filters.clear()
            logger.propagate = True

        print(f"\nLazy Filter Performance:")
        print(f"  Throughput: {throughput:,.0f} records/sec")

        assert stream.getvalue() == ""
        assert throughput >= performance_config["min_throughput_lazy_unrendered"]


@pytest.mark.performance
class TestConcurrentRendering:
    def test_shared_factory_across_threads(self):
        factory = unbounded_factory()
        reset_stringify_stats()

        def worker(worker_id):
            results = []
            for i in range(200):
                results.append(factory.stringify(make_order(worker_id * 1000 + i)))
            return results

        with ThreadPoolExecutor(max_workers=8) as executor:
            futures = [executor.submit(worker, w) for w in range(8)]
            outputs = [result for future in as_completed(futures) for result in future.result()]

        assert len(outputs) == 1600
        assert all(output.startswith("Order{order_id:") for output in outputs)
        stats = get_stringify_stats()
        assert stats["renders"] == 1600
        assert stats["failures"] == 0
