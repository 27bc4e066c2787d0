"""
Query pipeline

Listing endpoints run a collection snapshot through the same fixed stages:

    equality filters -> substring search -> price range -> sort -> limit

The pipeline never mutates the snapshot it is given and never rejects a
request: a parameter that cannot be parsed is treated as absent.
"""
import unicodedata
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple

from schemas import QueryParams

Record = Dict[str, Any]

ALL_CATEGORIES = "All"

EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


# -----------------------------
# Parse-or-default helpers
# -----------------------------

def parse_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    return None if number != number else number


def parse_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def parse_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if value is None:
        return None
    text = str(value).strip().lower()
    if text == "true":
        return True
    if text == "false":
        return False
    return None


def parse_date(value: Any) -> Optional[datetime]:
    """
    ISO-8601 timestamp to an aware datetime.

    Date-only values are midnight UTC; other naive values are taken as local time.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
        if len(value.strip()) == 10:
            return parsed.replace(tzinfo=timezone.utc)
    else:
        return None
    return parsed if parsed.tzinfo is not None else parsed.astimezone()


def number(value: Any) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value == value:
        return value
    parsed = parse_float(value)
    return 0 if parsed is None else parsed


def text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def collation_key(value: Any) -> Tuple[str, str]:
    """Accent- and case-insensitive ordering, ties broken by the raw string."""
    raw = text(value)
    folded = "".join(c for c in unicodedata.normalize("NFKD", raw) if not unicodedata.combining(c))
    return folded.casefold(), raw


def date_key(field: str) -> Callable[[Record], datetime]:
    return lambda record: parse_date(record.get(field)) or EARLIEST


def number_key(field: str) -> Callable[[Record], float]:
    return lambda record: number(record.get(field))


def string_key(field: str) -> Callable[[Record], Tuple[str, str]]:
    return lambda record: collation_key(record.get(field))


# -----------------------------
# Collection queries
# -----------------------------

class QueryResult(NamedTuple):
    data: List[Record]
    total: int


class Sort(NamedTuple):
    key: Callable[[Record], Any]
    descending: bool = False


class CollectionQuery:
    """
    Recognized parameters and sort keys for one collection.

    `filters` are equality filters on the record field of the same name,
    `search_fields` are matched case-insensitively, `literal_search_fields`
    are matched as-is.
    """

    def __init__(
        self,
        name: str,
        filters: Sequence[str],
        search_fields: Sequence[str],
        sorts: Dict[str, Sort],
        literal_search_fields: Sequence[str] = (),
        default_sort: Optional[str] = None,
        price_range: bool = False,
        featured: bool = False,
        limit: bool = False,
    ):
        self.name = name
        self.filters = tuple(filters)
        self.search_fields = tuple(search_fields)
        self.literal_search_fields = tuple(literal_search_fields)
        self.sorts = sorts
        self.default_sort = default_sort
        self.price_range = price_range
        self.featured = featured
        self.limit = limit

    @property
    def parameters(self) -> List[str]:
        names = list(self.filters)
        if self.featured:
            names.append("featured")
        names.append("search")
        if self.price_range:
            names += ["minPrice", "maxPrice"]
        names.append("sort")
        if self.limit:
            names.append("limit")
        return names

    @property
    def sort_keys(self) -> List[str]:
        return list(self.sorts)

    def run(self, records: Sequence[Record], params: QueryParams) -> QueryResult:
        result = list(records)

        for field in self.filters:
            expected = getattr(params, field, None)
            if not expected:
                continue
            if field == "category" and expected == ALL_CATEGORIES:
                continue
            result = [r for r in result if r.get(field) == expected]

        if self.featured and parse_bool(params.featured) is True:
            result = [r for r in result if r.get("featured") is True]

        if params.search:
            result = [r for r in result if self.matches(r, params.search)]

        if self.price_range:
            low = parse_float(params.minPrice)
            high = parse_float(params.maxPrice)
            if low is not None:
                result = [r for r in result if number(r.get("price")) >= low]
            if high is not None:
                result = [r for r in result if number(r.get("price")) <= high]

        sort = self.sorts.get(params.sort or self.default_sort or "")
        if sort is not None:
            result = sorted(result, key=sort.key, reverse=sort.descending)

        if self.limit:
            limit = parse_int(params.limit)
            if limit is not None and limit > 0:
                result = result[:limit]

        return QueryResult(data=result, total=len(result))

    def matches(self, record: Record, term: str) -> bool:
        needle = term.lower()
        if any(needle in text(record.get(f)).lower() for f in self.search_fields):
            return True
        return any(term in text(record.get(f)) for f in self.literal_search_fields)


PRODUCTS = CollectionQuery(
    "products",
    filters=["category"],
    search_fields=["name", "category", "description"],
    sorts={
        "price_asc": Sort(number_key("price")),
        "price_desc": Sort(number_key("price"), descending=True),
        "name_asc": Sort(string_key("name")),
        "name_desc": Sort(string_key("name"), descending=True),
        "newest": Sort(date_key("createdAt"), descending=True),
        "orders_desc": Sort(number_key("orders"), descending=True),
    },
    price_range=True,
    featured=True,
)

# Phone numbers are matched digit-for-digit, without lowercasing.
CUSTOMERS = CollectionQuery(
    "customers",
    filters=["status"],
    search_fields=["name", "email"],
    literal_search_fields=["phone"],
    sorts={
        "name_asc": Sort(string_key("name")),
        "name_desc": Sort(string_key("name"), descending=True),
        "orders_desc": Sort(number_key("totalOrders"), descending=True),
        "spent_desc": Sort(number_key("totalSpent"), descending=True),
        "newest": Sort(date_key("joinDate"), descending=True),
    },
)

ORDERS = CollectionQuery(
    "orders",
    filters=["status", "customerId"],
    search_fields=["orderNumber", "customerName", "customerEmail"],
    sorts={
        "date_desc": Sort(date_key("orderDate"), descending=True),
        "date_asc": Sort(date_key("orderDate")),
        "total_desc": Sort(number_key("total"), descending=True),
        "total_asc": Sort(number_key("total")),
    },
    default_sort="date_desc",
    limit=True,
)

QUERIES = {q.name: q for q in (PRODUCTS, CUSTOMERS, ORDERS)}

QUERY_PARAMETERS = {name: q.parameters for name, q in QUERIES.items()}

SORT_KEYS = {name: q.sort_keys for name, q in QUERIES.items()}


def run(collection: str, records: Sequence[Record], params: Optional[QueryParams] = None) -> QueryResult:
    if collection not in QUERIES:
        raise ValueError(f"Unknown collection: {collection}")
    return QUERIES[collection].run(records, params or QueryParams())
