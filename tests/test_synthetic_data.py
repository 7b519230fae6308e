from datetime import date

import pytest

from customer_segmentation.synthetic import (
    OrderLineConfig,
    check_consistent_order_headers,
    check_duplicate_lines_present,
    check_non_negative_sales,
    check_ship_after_order,
    check_temporal_coverage,
    generate_order_lines,
)

START = date(2013, 1, 1)
END = date(2013, 12, 31)


def test_generate_order_lines_basic() -> None:
    lines = generate_order_lines(50, START, END, config=OrderLineConfig(seed=7))
    assert len(lines) > 50
    assert len({line.customer_name for line in lines}) == 50
    assert check_non_negative_sales(lines).ok
    assert check_ship_after_order(lines).ok
    assert check_consistent_order_headers(lines).ok
    assert check_temporal_coverage(lines, START, END).ok


def test_orders_have_multiple_lines() -> None:
    lines = generate_order_lines(
        30, START, END, config=OrderLineConfig(max_lines_per_order=4, seed=3)
    )
    result = check_duplicate_lines_present(lines)
    assert result.ok, result.message


def test_single_line_orders_detected() -> None:
    lines = generate_order_lines(
        10, START, END, config=OrderLineConfig(max_lines_per_order=1, seed=3)
    )
    assert not check_duplicate_lines_present(lines).ok


def test_seed_makes_generation_deterministic() -> None:
    config = OrderLineConfig(seed=99)
    assert generate_order_lines(20, START, END, config=config) == generate_order_lines(
        20, START, END, config=config
    )


def test_empty_inputs_are_handled() -> None:
    assert generate_order_lines(0, START, END) == []
    assert check_non_negative_sales([]).ok
    assert not check_duplicate_lines_present([]).ok


def test_invalid_window_raises() -> None:
    with pytest.raises(ValueError, match="start date must be <= end date"):
        generate_order_lines(5, END, START)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"mean_orders_per_customer": 0},
        {"max_lines_per_order": 0},
        {"mean_line_sales": -1},
        {"sales_variability": 0},
        {"sales_variability": 1.5},
        {"max_ship_days": -1},
    ],
)
def test_config_validation(kwargs) -> None:
    with pytest.raises(ValueError):
        OrderLineConfig(**kwargs)


def test_checks_report_problems() -> None:
    lines = generate_order_lines(5, START, END, config=OrderLineConfig(seed=1))
    assert not check_temporal_coverage(lines, date(2014, 1, 1), date(2014, 12, 31)).ok
