"""
Tests for the standard logging integration
"""

import logging

from structured_stringify import LazyStringified, StringifyArgsFilter, get_logger


class Order:
    def __init__(self, order_id, items):
        self.order_id = order_id
        self.items = items


def make_record(msg, args):
    return logging.LogRecord("test", logging.INFO, __file__, 1, msg, args, None)


def test_filter_wraps_objects_but_not_values(factory):
    record = make_record("%s %s %s", (Order(1, []), 42, "text"))
    assert StringifyArgsFilter(factory=factory).filter(record) is True

    order, number, text = record.args
    assert isinstance(order, LazyStringified)
    assert number == 42
    assert text == "text"
    assert not order.is_rendered()


def test_filter_renders_on_format(factory):
    record = make_record("placed %s", (Order(7, ["a"]),))
    StringifyArgsFilter(factory=factory).filter(record)
    assert record.getMessage() == 'placed Order{order_id:7, items:list(1)["a"]}'


def test_filter_handles_mapping_args(factory):
    record = make_record("%(order)r", ({"order": Order(2, [])},))
    StringifyArgsFilter(factory=factory).filter(record)
    assert record.getMessage() == "Order{order_id:2, items:list(0)[]}"


def test_record_without_args_passes():
    record = make_record("plain", None)
    assert StringifyArgsFilter().filter(record) is True
    assert record.getMessage() == "plain"


def test_get_logger_installs_filter_once(caplog, factory):
    logger = get_logger("structured_stringify.tests.orders", factory)
    get_logger("structured_stringify.tests.orders", factory)
    assert sum(isinstance(f, StringifyArgsFilter) for f in logger.filters) == 1

    with caplog.at_level(logging.INFO, logger="structured_stringify.tests.orders"):
        logger.info("order %s", Order(3, []))
    assert caplog.records[-1].getMessage() == "order Order{order_id:3, items:list(0)[]}"
