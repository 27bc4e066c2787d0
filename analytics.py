"""
Dashboard aggregation

Derives summary statistics and revenue series from snapshots of the three
collections. Every function is read-only and takes an optional `now`
(an aware datetime) so results can be pinned to a fixed clock; by default the
current local time is used. Calendar comparisons (same day, same month) are
made in `now`'s time zone.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from query import date_key, number, parse_date, parse_float, parse_int
from schemas import (
    ChartData,
    CountStat,
    DailyPoint,
    DashboardStats,
    MonthlyPoint,
    OrdersByStatus,
    PopularProduct,
    ProductStat,
    RecentOrder,
    RevenueStat,
    Stats,
)

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")
PAID = "paid"

LOW_STOCK_THRESHOLD = 20
PREVIOUS_MONTH_FACTOR = 0.85
# Placeholder growth figures shown until historical tracking exists
ORDERS_GROWTH = 12.5
CUSTOMERS_GROWTH = 8.2

DAILY_BUCKETS = 7
MONTHLY_BUCKETS = 6
RECENT_ORDERS_LIMIT = 5
POPULAR_PRODUCTS_LIMIT = 6

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
WEEKDAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def current_time(now: Optional[datetime] = None) -> datetime:
    if now is None:
        return datetime.now().astimezone()
    return now if now.tzinfo is not None else now.astimezone()


def local_date(value: Any, now: datetime) -> Optional[date]:
    parsed = parse_date(value)
    if parsed is None:
        return None
    return parsed.astimezone(now.tzinfo).date()


def resolve_limit(value: Any, default: int) -> int:
    """Explicit non-negative limits are honored (0 included); anything else falls back to default."""
    limit = parse_int(value)
    if limit is None or limit < 0:
        return default
    return limit


def format_currency(value: float) -> str:
    formatted = f"{value:,.3f}".rstrip("0").rstrip(".")
    return f"${formatted}"


def is_paid(order: Record) -> bool:
    return order.get("paymentStatus") == PAID


def in_month(value: Any, year: int, month: int, now: datetime) -> bool:
    day = local_date(value, now)
    return day is not None and day.year == year and day.month == month


def month_offset(year: int, month: int, back: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) - back
    return index // 12, index % 12 + 1


# -----------------------------
# Summary statistics
# -----------------------------

def revenue_totals(orders: Sequence[Record], now: Optional[datetime] = None) -> RevenueStat:
    now = current_time(now)
    paid = [o for o in orders if is_paid(o)]
    total = sum(number(o.get("total")) for o in paid)
    this_month = sum(
        number(o.get("total")) for o in paid
        if in_month(o.get("orderDate"), now.year, now.month, now)
    )

    # There is no stored history yet: the previous month is estimated from
    # the current one, so growth is constant whenever there is revenue.
    previous_month = this_month * PREVIOUS_MONTH_FACTOR
    growth = (this_month - previous_month) / previous_month * 100 if previous_month > 0 else 0

    return RevenueStat(value=total, thisMonth=this_month, growth=growth, formatted=format_currency(total))


def status_histogram(orders: Sequence[Record]) -> OrdersByStatus:
    counts = {status: 0 for status in ORDER_STATUSES}
    for order in orders:
        status = order.get("status")
        if status in counts:
            counts[status] += 1
    return OrdersByStatus(**counts)


def low_stock_count(products: Sequence[Record]) -> int:
    return sum(1 for p in products if number(p.get("stock")) < LOW_STOCK_THRESHOLD)


def summary_stats(products: Sequence[Record], customers: Sequence[Record], orders: Sequence[Record],
                  now: Optional[datetime] = None) -> Stats:
    now = current_time(now)
    orders_this_month = sum(1 for o in orders if in_month(o.get("orderDate"), now.year, now.month, now))
    customers_this_month = sum(1 for c in customers if in_month(c.get("joinDate"), now.year, now.month, now))

    return Stats(
        totalRevenue=revenue_totals(orders, now),
        totalOrders=CountStat(value=len(orders), thisMonth=orders_this_month, growth=ORDERS_GROWTH),
        totalCustomers=CountStat(value=len(customers), thisMonth=customers_this_month, growth=CUSTOMERS_GROWTH),
        totalProducts=ProductStat(value=len(products), lowStock=low_stock_count(products)),
        ordersByStatus=status_histogram(orders),
    )


# -----------------------------
# Revenue series
# -----------------------------

def daily_series(orders: Sequence[Record], now: Optional[datetime] = None) -> List[DailyPoint]:
    """Paid revenue per calendar day for the last 7 days, today included, oldest first."""
    now = current_time(now)
    today = now.date()
    days = [today - timedelta(days=back) for back in range(DAILY_BUCKETS - 1, -1, -1)]
    buckets = {day: [0, 0] for day in days}

    for order in orders:
        if not is_paid(order):
            continue
        bucket = buckets.get(local_date(order.get("orderDate"), now))
        if bucket is not None:
            bucket[0] += number(order.get("total"))
            bucket[1] += 1

    return [
        DailyPoint(date=day.isoformat(), label=WEEKDAY_NAMES[day.weekday()],
                   revenue=buckets[day][0], orders=buckets[day][1])
        for day in days
    ]


def monthly_series(orders: Sequence[Record], now: Optional[datetime] = None) -> List[MonthlyPoint]:
    """Paid revenue per calendar month for the last 6 months, current month included, oldest first."""
    now = current_time(now)
    months = [month_offset(now.year, now.month, back) for back in range(MONTHLY_BUCKETS - 1, -1, -1)]
    buckets = {month: [0, 0] for month in months}

    for order in orders:
        if not is_paid(order):
            continue
        day = local_date(order.get("orderDate"), now)
        if day is None:
            continue
        bucket = buckets.get((day.year, day.month))
        if bucket is not None:
            bucket[0] += number(order.get("total"))
            bucket[1] += 1

    return [
        MonthlyPoint(month=MONTH_NAMES[month - 1], year=year,
                     revenue=buckets[(year, month)][0], orders=buckets[(year, month)][1])
        for year, month in months
    ]


def chart_data(orders: Sequence[Record], now: Optional[datetime] = None) -> ChartData:
    now = current_time(now)
    return ChartData(daily=daily_series(orders, now), monthly=monthly_series(orders, now))


# -----------------------------
# Rankings
# -----------------------------

def recent_orders(orders: Sequence[Record], limit: Any = None) -> List[RecentOrder]:
    limit = resolve_limit(limit, RECENT_ORDERS_LIMIT)
    ranked = sorted(orders, key=date_key("orderDate"), reverse=True)[:limit]
    return [
        RecentOrder(
            id=o.get("id"),
            orderNumber=o.get("orderNumber"),
            customerName=o.get("customerName"),
            total=number(o.get("total")),
            status=o.get("status"),
            orderDate=o.get("orderDate"),
            items=len(o["items"]) if isinstance(o.get("items"), list) else 0,
        )
        for o in ranked
    ]


def popular_products(products: Sequence[Record], limit: Any = None) -> List[PopularProduct]:
    limit = resolve_limit(limit, POPULAR_PRODUCTS_LIMIT)
    ranked = sorted(products, key=lambda p: number(p.get("orders")), reverse=True)[:limit]
    return [
        PopularProduct(
            id=p.get("id"),
            name=p.get("name"),
            image=p.get("image"),
            orders=number(p.get("orders")),
            rank=p.get("rank"),
            price=number(p.get("price")),
            rating=parse_float(p.get("rating")),
        )
        for p in ranked
    ]


def compute(products: Sequence[Record], customers: Sequence[Record], orders: Sequence[Record],
            now: Optional[datetime] = None, recent_limit: Any = None, popular_limit: Any = None) -> DashboardStats:
    now = current_time(now)
    logger.debug("Computing dashboard for %d products, %d customers, %d orders",
                 len(products), len(customers), len(orders))
    return DashboardStats(
        stats=summary_stats(products, customers, orders, now),
        charts=chart_data(orders, now),
        recentOrders=recent_orders(orders, recent_limit),
        popularProducts=popular_products(products, popular_limit),
    )
