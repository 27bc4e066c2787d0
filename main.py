import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

import analytics
import query
from config import configure_logging, get_settings
from database import COLLECTIONS, JsonCollectionStore, utc_now_iso
from schemas import (
    CustomerIn,
    CustomerUpdate,
    OrderIn,
    OrderUpdate,
    ProductIn,
    ProductUpdate,
    QueryParams,
)

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

store = JsonCollectionStore(settings.data_dir)


def get_store() -> JsonCollectionStore:
    return store


def get_clock() -> Optional[datetime]:
    """Reference time for dashboard calendars; None means the current local time."""
    return None


@asynccontextmanager
async def lifespan(app: FastAPI):
    store.initialize(seed=settings.seed_data)
    logger.info("Data initialization complete (%s)", store.data_dir)
    yield


app = FastAPI(title="Storefront Admin API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def not_found(kind: str):
    return HTTPException(status_code=404, detail=f"{kind} not found")


def save_failed(kind: str):
    return HTTPException(status_code=500, detail=f"Failed to save {kind}")


@app.get("/")
def read_root():
    return {"message": "Storefront Admin Backend Running"}


@app.get("/test")
def test_database(db: JsonCollectionStore = Depends(get_store)):
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "data_dir": db.data_dir,
        "collections": {},
    }

    if os.path.isdir(db.data_dir):
        response["database"] = "✅ Available"
        response["collections"] = {name: len(db.get_documents(name)) for name in COLLECTIONS}
    else:
        response["database"] = "⚠️ Data directory missing"

    return response


@app.get("/schema")
def get_schema():
    return {
        "collections": list(COLLECTIONS),
        "parameters": query.QUERY_PARAMETERS,
        "sorts": query.SORT_KEYS,
    }


# -----------------------------
# Store: Products
# -----------------------------

@app.get("/api/products")
def list_products(
    category: Optional[str] = None,
    featured: Optional[str] = None,
    search: Optional[str] = None,
    minPrice: Optional[str] = None,
    maxPrice: Optional[str] = None,
    sort: Optional[str] = None,
    db: JsonCollectionStore = Depends(get_store),
):
    params = QueryParams(category=category, featured=featured, search=search,
                         minPrice=minPrice, maxPrice=maxPrice, sort=sort)
    result = query.run("products", db.get_documents("products"), params)
    return {"success": True, "data": result.data, "total": result.total}


@app.get("/api/products/{product_id}")
def get_product(product_id: str, db: JsonCollectionStore = Depends(get_store)):
    product = db.get_document("products", product_id)
    if not product:
        raise not_found("Product")
    return {"success": True, "data": product}


@app.post("/api/products", status_code=201)
def create_product(product: ProductIn, db: JsonCollectionStore = Depends(get_store)):
    now = utc_now_iso()
    created = db.create_document("products", {**product.model_dump(), "createdAt": now, "updatedAt": now})
    if created is None:
        raise save_failed("product")
    logger.info("Created product %s", created["id"])
    return {"success": True, "data": created, "message": "Product created successfully"}


def merge_product(current: dict, changes: dict) -> dict:
    changes = {k: v for k, v in changes.items() if k not in ("id", "createdAt")}
    return {**current, **changes, "updatedAt": utc_now_iso()}


@app.put("/api/products/{product_id}")
def update_product(product_id: str, payload: ProductUpdate, db: JsonCollectionStore = Depends(get_store)):
    updated, saved = db.update_document("products", product_id, payload.model_dump(exclude_unset=True), merge_product)
    if updated is None:
        raise not_found("Product")
    if not saved:
        raise save_failed("product")
    logger.info("Updated product %s", product_id)
    return {"success": True, "data": updated, "message": "Product updated successfully"}


@app.delete("/api/products/{product_id}")
def delete_product(product_id: str, db: JsonCollectionStore = Depends(get_store)):
    deleted, saved = db.delete_document("products", product_id)
    if deleted is None:
        raise not_found("Product")
    if not saved:
        raise save_failed("product")
    logger.info("Deleted product %s", product_id)
    return {"success": True, "data": deleted, "message": "Product deleted successfully"}


# -----------------------------
# Store: Customers
# -----------------------------

@app.get("/api/customers")
def list_customers(
    status: Optional[str] = None,
    search: Optional[str] = None,
    sort: Optional[str] = None,
    db: JsonCollectionStore = Depends(get_store),
):
    params = QueryParams(status=status, search=search, sort=sort)
    result = query.run("customers", db.get_documents("customers"), params)
    return {"success": True, "data": result.data, "total": result.total}


@app.get("/api/customers/{customer_id}")
def get_customer(customer_id: str, db: JsonCollectionStore = Depends(get_store)):
    customer = db.get_document("customers", customer_id)
    if not customer:
        raise not_found("Customer")
    return {"success": True, "data": customer}


@app.post("/api/customers", status_code=201)
def create_customer(customer: CustomerIn, db: JsonCollectionStore = Depends(get_store)):
    customer_dict = {
        **customer.model_dump(),
        "totalOrders": 0,
        "totalSpent": 0,
        "joinDate": utc_now_iso(),
        "status": "active",
    }
    created = db.create_document("customers", customer_dict)
    if created is None:
        raise save_failed("customer")
    logger.info("Created customer %s", created["id"])
    return {"success": True, "data": created, "message": "Customer created successfully"}


def merge_customer(current: dict, changes: dict) -> dict:
    changes = {k: v for k, v in changes.items() if k not in ("id", "joinDate")}
    return {**current, **changes}


@app.put("/api/customers/{customer_id}")
def update_customer(customer_id: str, payload: CustomerUpdate, db: JsonCollectionStore = Depends(get_store)):
    updated, saved = db.update_document("customers", customer_id, payload.model_dump(exclude_unset=True), merge_customer)
    if updated is None:
        raise not_found("Customer")
    if not saved:
        raise save_failed("customer")
    logger.info("Updated customer %s", customer_id)
    return {"success": True, "data": updated, "message": "Customer updated successfully"}


@app.delete("/api/customers/{customer_id}")
def delete_customer(customer_id: str, db: JsonCollectionStore = Depends(get_store)):
    deleted, saved = db.delete_document("customers", customer_id)
    if deleted is None:
        raise not_found("Customer")
    if not saved:
        raise save_failed("customer")
    logger.info("Deleted customer %s", customer_id)
    return {"success": True, "data": deleted, "message": "Customer deleted successfully"}


# -----------------------------
# Store: Orders
# -----------------------------

def next_order_number(orders: list) -> dict:
    # Derived from the collection size, so numbers can repeat after deletions
    return {"orderNumber": f"ORD-{datetime.now().year}-{len(orders) + 1:03d}"}


@app.get("/api/orders")
def list_orders(
    status: Optional[str] = None,
    customerId: Optional[str] = None,
    search: Optional[str] = None,
    sort: Optional[str] = None,
    limit: Optional[str] = None,
    db: JsonCollectionStore = Depends(get_store),
):
    params = QueryParams(status=status, customerId=customerId, search=search, sort=sort, limit=limit)
    result = query.run("orders", db.get_documents("orders"), params)
    return {"success": True, "data": result.data, "total": result.total}


@app.get("/api/orders/{order_id}")
def get_order(order_id: str, db: JsonCollectionStore = Depends(get_store)):
    order = db.get_document("orders", order_id)
    if not order:
        raise not_found("Order")
    return {"success": True, "data": order}


@app.post("/api/orders", status_code=201)
def create_order(payload: OrderIn, db: JsonCollectionStore = Depends(get_store)):
    order_dict = {**payload.model_dump(), "orderDate": utc_now_iso()}
    created = db.create_document("orders", order_dict, next_order_number)
    if created is None:
        raise save_failed("order")
    logger.info("Created order %s (%s)", created["id"], created["orderNumber"])
    return {"success": True, "data": created, "message": "Order created successfully"}


def merge_order(current: dict, changes: dict) -> dict:
    changes = {k: v for k, v in changes.items() if k not in ("id", "orderNumber", "orderDate")}
    updated = {**current, **changes}

    status = changes.get("status")
    if status == "shipped" and not updated.get("shippedDate"):
        updated["shippedDate"] = utc_now_iso()
    elif status == "delivered" and not updated.get("deliveredDate"):
        updated["deliveredDate"] = utc_now_iso()
    return updated


@app.put("/api/orders/{order_id}")
def update_order(order_id: str, payload: OrderUpdate, db: JsonCollectionStore = Depends(get_store)):
    updated, saved = db.update_document("orders", order_id, payload.model_dump(exclude_unset=True), merge_order)
    if updated is None:
        raise not_found("Order")
    if not saved:
        raise save_failed("order")
    logger.info("Updated order %s", order_id)
    return {"success": True, "data": updated, "message": "Order updated successfully"}


@app.delete("/api/orders/{order_id}")
def delete_order(order_id: str, db: JsonCollectionStore = Depends(get_store)):
    deleted, saved = db.delete_document("orders", order_id)
    if deleted is None:
        raise not_found("Order")
    if not saved:
        raise save_failed("order")
    logger.info("Deleted order %s", order_id)
    return {"success": True, "data": deleted, "message": "Order deleted successfully"}


# -----------------------------
# Analytics
# -----------------------------

@app.get("/api/dashboard")
def dashboard(
    recentLimit: Optional[str] = None,
    popularLimit: Optional[str] = None,
    db: JsonCollectionStore = Depends(get_store),
    now: Optional[datetime] = Depends(get_clock),
):
    products, customers, orders = (db.get_documents(name) for name in COLLECTIONS)
    stats = analytics.compute(products, customers, orders,
                              now=now, recent_limit=recentLimit, popular_limit=popularLimit)
    return {"success": True, "data": stats.model_dump()}


@app.get("/api/dashboard/stats")
def dashboard_stats(db: JsonCollectionStore = Depends(get_store), now: Optional[datetime] = Depends(get_clock)):
    products, customers, orders = (db.get_documents(name) for name in COLLECTIONS)
    stats = analytics.summary_stats(products, customers, orders, now)
    return {"success": True, "data": stats.model_dump()}


@app.get("/api/dashboard/chart-data")
def dashboard_chart_data(db: JsonCollectionStore = Depends(get_store), now: Optional[datetime] = Depends(get_clock)):
    charts = analytics.chart_data(db.get_documents("orders"), now)
    return {"success": True, "data": charts.model_dump()}


@app.get("/api/dashboard/recent-orders")
def dashboard_recent_orders(limit: Optional[str] = None, db: JsonCollectionStore = Depends(get_store)):
    orders = analytics.recent_orders(db.get_documents("orders"), limit)
    return {"success": True, "data": [o.model_dump() for o in orders]}


@app.get("/api/dashboard/popular-products")
def dashboard_popular_products(limit: Optional[str] = None, db: JsonCollectionStore = Depends(get_store)):
    products = analytics.popular_products(db.get_documents("products"), limit)
    return {"success": True, "data": [p.model_dump() for p in products]}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
