"""
Store Schemas

Pydantic models for the storefront admin backend. Records are persisted as
plain JSON objects with camelCase keys, so the model fields use the same
names as the stored documents:
- Product -> "products" collection
- Customer -> "customers" collection
- Order -> "orders" collection

Record payloads allow extra fields: whatever the caller sends is merged into
the stored document as-is.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Any, Union

Number = Union[int, float]

# -----------------------------
# Record payloads
# -----------------------------

class ProductIn(BaseModel):
    """
    Product create payload
    Collection: "products"
    """
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., description="Product name")
    category: Optional[str] = Field(None, description="Product category")
    description: Optional[str] = None
    price: float = Field(0, ge=0, description="Unit price")
    featured: bool = False
    stock: int = Field(0, ge=0, description="Units in stock")
    orders: int = Field(0, ge=0, description="Units sold, used for popularity ranking")
    rating: Optional[float] = None
    image: Optional[str] = None
    sku: Optional[str] = None


class ProductUpdate(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    featured: Optional[bool] = None
    stock: Optional[int] = Field(None, ge=0)
    orders: Optional[int] = Field(None, ge=0)
    rating: Optional[float] = None
    image: Optional[str] = None
    sku: Optional[str] = None


class CustomerIn(BaseModel):
    """
    Customer create payload
    Collection: "customers"

    totalOrders, totalSpent, status and joinDate are assigned by the server.
    """
    model_config = ConfigDict(extra="allow")

    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class CustomerUpdate(BaseModel):
    """Rollup fields are stored exactly as supplied; they are not derived from orders."""
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    status: Optional[str] = Field(None, description="active, inactive")
    totalOrders: Optional[int] = Field(None, ge=0)
    totalSpent: Optional[float] = Field(None, ge=0)


class OrderItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    productId: Optional[str] = None
    name: Optional[str] = None
    price: float = 0
    quantity: int = Field(1, ge=1)


class OrderIn(BaseModel):
    """
    Order create payload
    Collection: "orders"
    """
    model_config = ConfigDict(extra="allow")

    customerId: Optional[str] = None
    customerName: Optional[str] = None
    customerEmail: Optional[str] = None
    items: List[OrderItem] = Field(default_factory=list)
    total: float = Field(0, ge=0)
    status: str = Field("pending", description="pending, processing, shipped, delivered, cancelled")
    paymentStatus: str = Field("pending", description="pending, paid, refunded, failed")


class OrderUpdate(BaseModel):
    model_config = ConfigDict(extra="allow")

    customerId: Optional[str] = None
    customerName: Optional[str] = None
    customerEmail: Optional[str] = None
    items: Optional[List[OrderItem]] = None
    total: Optional[float] = Field(None, ge=0)
    status: Optional[str] = None
    paymentStatus: Optional[str] = None

# -----------------------------
# Query parameters
# -----------------------------

class QueryParams(BaseModel):
    """
    Raw query-string directives for a collection listing.

    Everything is kept as an optional string; the query pipeline decides what
    is recognized and silently ignores values it cannot parse.
    """
    status: Optional[str] = None
    customerId: Optional[str] = None
    category: Optional[str] = None
    featured: Optional[str] = None
    search: Optional[str] = None
    minPrice: Optional[str] = None
    maxPrice: Optional[str] = None
    sort: Optional[str] = None
    limit: Optional[str] = None

# -----------------------------
# Dashboard
# -----------------------------

class RevenueStat(BaseModel):
    value: Number
    thisMonth: Number
    growth: Number
    formatted: str


class CountStat(BaseModel):
    value: int
    thisMonth: int
    growth: Number


class ProductStat(BaseModel):
    value: int
    lowStock: int


class OrdersByStatus(BaseModel):
    pending: int = 0
    processing: int = 0
    shipped: int = 0
    delivered: int = 0
    cancelled: int = 0


class Stats(BaseModel):
    totalRevenue: RevenueStat
    totalOrders: CountStat
    totalCustomers: CountStat
    totalProducts: ProductStat
    ordersByStatus: OrdersByStatus


class DailyPoint(BaseModel):
    date: str = Field(..., description="Calendar day, YYYY-MM-DD")
    label: str = Field(..., description="Short weekday name")
    revenue: Number
    orders: int


class MonthlyPoint(BaseModel):
    month: str = Field(..., description="Short month name")
    year: int
    revenue: Number
    orders: int


class ChartData(BaseModel):
    daily: List[DailyPoint]
    monthly: List[MonthlyPoint]


class RecentOrder(BaseModel):
    """Projection of a stored order; identifying fields pass through unchanged."""
    id: Optional[Any] = None
    orderNumber: Optional[Any] = None
    customerName: Optional[Any] = None
    total: Number = 0
    status: Optional[Any] = None
    orderDate: Optional[Any] = None
    items: int = 0


class PopularProduct(BaseModel):
    id: Optional[Any] = None
    name: Optional[Any] = None
    image: Optional[Any] = None
    orders: Number = 0
    rank: Optional[Any] = None
    price: Number = 0
    rating: Optional[float] = None


class DashboardStats(BaseModel):
    stats: Stats
    charts: ChartData
    recentOrders: List[RecentOrder]
    popularProducts: List[PopularProduct]
