from datetime import datetime, timedelta, timezone

import pytest

import analytics

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def iso(moment):
    return moment.isoformat().replace("+00:00", "Z")


def order(id, total, when, status="delivered", payment="paid", items=1):
    return {
        "id": id,
        "orderNumber": f"ORD-2026-{id}",
        "customerName": f"Customer {id}",
        "total": total,
        "status": status,
        "paymentStatus": payment,
        "orderDate": iso(when),
        "items": [{"name": "thing"}] * items,
    }


@pytest.fixture
def orders():
    return [
        order("001", 10, NOW - timedelta(hours=2)),
        order("002", 20, NOW.replace(hour=0, minute=5)),
        order("003", 5, NOW - timedelta(days=1), status="shipped"),
        order("004", 100, NOW - timedelta(days=2), status="pending", payment="pending"),
        order("005", 70, datetime(2026, 6, 3, tzinfo=timezone.utc), status="cancelled"),
        order("006", 999, datetime(2025, 10, 19, tzinfo=timezone.utc), status="returned"),
    ]


def test_daily_series_buckets_paid_orders_by_calendar_day(orders):
    daily = analytics.daily_series(orders, NOW)
    assert len(daily) == 7
    assert [d.date for d in daily][0] == "2026-10-13"
    today, yesterday, before = daily[-1], daily[-2], daily[-3]
    assert (today.date, today.revenue, today.orders) == ("2026-10-19", 30, 2)
    assert (yesterday.revenue, yesterday.orders) == (5, 1)
    assert (before.revenue, before.orders) == (0, 0)
    assert today.label == "Mon"


def test_daily_series_uses_the_clock_time_zone():
    plus_two = timezone(timedelta(hours=2))
    now = datetime(2026, 10, 19, 1, 0, tzinfo=plus_two)
    # 22:30 UTC on the 18th is already the 19th at UTC+2
    late = order("001", 12, datetime(2026, 10, 18, 22, 30, tzinfo=timezone.utc))
    daily = analytics.daily_series([late], now)
    assert (daily[-1].date, daily[-1].revenue) == ("2026-10-19", 12)


def test_series_have_fixed_length_without_data():
    assert len(analytics.daily_series([], NOW)) == 7
    monthly = analytics.monthly_series([], NOW)
    assert len(monthly) == 6
    assert all(m.revenue == 0 and m.orders == 0 for m in monthly)


def test_monthly_series_spans_six_months_oldest_first(orders):
    monthly = analytics.monthly_series(orders, NOW)
    assert [(m.month, m.year) for m in monthly] == [
        ("May", 2026), ("Jun", 2026), ("Jul", 2026), ("Aug", 2026), ("Sep", 2026), ("Oct", 2026),
    ]
    assert (monthly[1].revenue, monthly[1].orders) == (70, 1)
    assert (monthly[-1].revenue, monthly[-1].orders) == (35, 3)


def test_monthly_series_crosses_year_boundary():
    now = datetime(2026, 2, 10, tzinfo=timezone.utc)
    monthly = analytics.monthly_series([order("001", 8, datetime(2025, 9, 30, tzinfo=timezone.utc))], now)
    assert [(m.month, m.year) for m in monthly][0] == ("Sep", 2025)
    assert monthly[0].revenue == 8


def test_revenue_totals_and_placeholder_growth(orders):
    revenue = analytics.revenue_totals(orders, NOW)
    assert revenue.value == 10 + 20 + 5 + 70 + 999
    assert revenue.thisMonth == 35
    assert revenue.growth == pytest.approx((35 - 35 * 0.85) / (35 * 0.85) * 100)
    assert revenue.formatted == "$1,104"


def test_growth_is_zero_without_revenue_this_month():
    assert analytics.revenue_totals([], NOW).growth == 0


def test_status_histogram_ignores_unknown_statuses(orders):
    histogram = analytics.status_histogram(orders)
    assert histogram.model_dump() == {
        "pending": 1, "processing": 0, "shipped": 1, "delivered": 2, "cancelled": 1,
    }
    assert sum(histogram.model_dump().values()) < len(orders)


def test_summary_stats(orders):
    products = [{"stock": 5}, {"stock": 20}, {"stock": 19}, {}]
    customers = [
        {"joinDate": iso(NOW - timedelta(days=3))},
        {"joinDate": "2026-09-30T10:00:00Z"},
    ]
    stats = analytics.summary_stats(products, customers, orders, NOW)
    assert stats.totalProducts.model_dump() == {"value": 4, "lowStock": 3}
    assert (stats.totalCustomers.value, stats.totalCustomers.thisMonth) == (2, 1)
    assert (stats.totalOrders.value, stats.totalOrders.thisMonth) == (6, 4)
    assert stats.totalOrders.growth == 12.5
    assert stats.totalCustomers.growth == 8.2


def test_recent_orders_most_recent_first(orders):
    recent = analytics.recent_orders(orders)
    assert [o.id for o in recent] == ["001", "002", "003", "004", "005"]
    assert recent[0].model_dump() == {
        "id": "001",
        "orderNumber": "ORD-2026-001",
        "customerName": "Customer 001",
        "total": 10,
        "status": "delivered",
        "orderDate": orders[0]["orderDate"],
        "items": 1,
    }


@pytest.mark.parametrize("limit,expected", [(None, 5), (2, 2), ("3", 3), (0, 0), ("0", 0), ("x", 5), (-4, 5)])
def test_recent_orders_limit(orders, limit, expected):
    assert len(analytics.recent_orders(orders, limit)) == expected


def test_popular_products_ranked_by_orders():
    products = [
        {"id": str(i), "name": f"P{i}", "orders": i * 10, "price": 9.5, "rating": 4.1, "rank": i}
        for i in range(1, 9)
    ]
    popular = analytics.popular_products(products)
    assert [p.id for p in popular] == ["8", "7", "6", "5", "4", "3"]
    assert popular[0].orders == 80
    assert analytics.popular_products(products, 0) == []


def test_compute_does_not_reorder_snapshots(orders):
    products = [{"id": "a", "orders": 1}, {"id": "b", "orders": 3}]
    before_orders = [o["id"] for o in orders]
    stats = analytics.compute(products, [], orders, now=NOW, recent_limit=1, popular_limit=1)
    assert [o["id"] for o in orders] == before_orders
    assert [p["id"] for p in products] == ["a", "b"]
    assert [o.id for o in stats.recentOrders] == ["001"]
    assert [p.id for p in stats.popularProducts] == ["b"]
    assert len(stats.charts.daily) == 7 and len(stats.charts.monthly) == 6


@pytest.mark.parametrize("value,expected", [(0, "$0"), (1234.5, "$1,234.5"), (1240, "$1,240"), (0.1234, "$0.123")])
def test_format_currency(value, expected):
    assert analytics.format_currency(value) == expected


def test_projections_pass_identifiers_through_unchanged():
    orders = [
        {"id": 7, "orderNumber": 1001, "total": 4, "status": "pending", "orderDate": 1700000000, "items": "n/a"},
        order("002", 9, NOW),
    ]
    recent = analytics.recent_orders(orders)
    assert [o.id for o in recent] == ["002", 7]
    assert (recent[1].orderNumber, recent[1].orderDate, recent[1].items) == (1001, 1700000000, 0)

    popular = analytics.popular_products([{"id": 1, "name": None, "image": 3, "orders": 2}])
    assert (popular[0].id, popular[0].image) == (1, 3)

    stats = analytics.compute([{"id": 1, "orders": 2}], [], orders, now=NOW)
    assert stats.recentOrders[1].id == 7
