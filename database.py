"""
Collection store

Each collection (products, customers, orders) lives in a single JSON document
under the data directory:

    data/products.json   -> {"products": [...]}
    data/customers.json  -> {"customers": [...]}
    data/orders.json     -> {"orders": [...]}

Every operation reads the whole document and mutating helpers write the whole
document back. Reads never raise: a missing or corrupt file is logged and
treated as an empty collection. Writes report failure by returning False.
"""
import json
import logging
import os
import threading
import uuid
from contextlib import contextmanager, suppress
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

COLLECTIONS = ("products", "customers", "orders")

Record = Dict[str, Any]


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


SAMPLE_PRODUCTS: List[Record] = [
    {
        "id": "1",
        "name": "Premium Laptop",
        "price": 1240,
        "image": "https://images.unsplash.com/photo-1496181133206-80ce9b88a853?w=400&h=300&fit=crop",
        "category": "Electronics",
        "featured": True,
        "rating": 4.5,
        "reviews": 128,
        "orders": 1250,
        "rank": 1,
        "stock": 45,
        "description": "High-performance laptop for professionals",
        "sku": "LAP-001",
        "createdAt": "2024-01-15T10:30:00Z",
        "updatedAt": "2024-07-31T10:30:00Z",
    },
    {
        "id": "2",
        "name": "Designer Handbag",
        "price": 899,
        "image": "https://images.unsplash.com/photo-1584917865442-de89df76afd3?w=400&h=300&fit=crop",
        "category": "Fashion",
        "featured": True,
        "rating": 4.8,
        "reviews": 89,
        "orders": 980,
        "rank": 2,
        "stock": 23,
        "description": "Luxury designer handbag made from premium materials",
        "sku": "BAG-002",
        "createdAt": "2024-02-10T14:20:00Z",
        "updatedAt": "2024-07-31T14:20:00Z",
    },
    {
        "id": "3",
        "name": "Wireless Headphones",
        "price": 299,
        "image": "https://images.unsplash.com/photo-1505740420928-5e560c06d30e?w=400&h=300&fit=crop",
        "category": "Electronics",
        "featured": False,
        "rating": 4.2,
        "reviews": 98,
        "orders": 312,
        "rank": 6,
        "stock": 12,
        "description": "Premium wireless headphones with noise cancellation",
        "sku": "HDP-006",
        "createdAt": "2024-06-22T08:20:00Z",
        "updatedAt": "2024-07-31T08:20:00Z",
    },
]


class JsonCollectionStore:
    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        self._locks = {name: threading.Lock() for name in COLLECTIONS}

    def path(self, name: str) -> str:
        if name not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {name}")
        return os.path.join(self.data_dir, f"{name}.json")

    # -----------------------------
    # Raw document I/O
    # -----------------------------

    def load(self, name: str) -> List[Record]:
        path = self.path(name)
        try:
            with open(path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Error reading %s data from %s: %s", name, path, e)
            return []

        records = document.get(name) if isinstance(document, dict) else document
        if not isinstance(records, list):
            logger.warning("Malformed %s document at %s, expected a list of records", name, path)
            return []
        return records

    def save(self, name: str, records: List[Record]) -> bool:
        path = self.path(name)
        tmp_path = f"{path}.tmp"
        try:
            content = json.dumps({name: records}, indent=2)
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            with suppress(OSError):
                os.remove(tmp_path)
            logger.error("Error writing %s data to %s: %s", name, path, e)
            return False
        return True

    @contextmanager
    def lock(self, name: str):
        """Serialize load-mutate-save cycles on one collection within this process."""
        self.path(name)
        with self._locks[name]:
            yield

    def initialize(self, seed: bool = True):
        os.makedirs(self.data_dir, exist_ok=True)
        defaults = {"products": SAMPLE_PRODUCTS if seed else [], "customers": [], "orders": []}
        for name in COLLECTIONS:
            path = self.path(name)
            if os.path.exists(path):
                logger.info("%s exists", path)
                continue
            if self.save(name, list(defaults[name])):
                logger.info("Created %s with %d records", path, len(defaults[name]))

    # -----------------------------
    # Document helpers
    # -----------------------------

    def get_documents(self, name: str, limit: Optional[int] = None) -> List[Record]:
        records = self.load(name)
        return records if limit is None else records[:limit]

    def get_document(self, name: str, record_id: str) -> Optional[Record]:
        return next((r for r in self.load(name) if r.get("id") == record_id), None)

    def create_document(self, name: str, data: Record,
                        build: Optional[Callable[[List[Record]], Record]] = None) -> Optional[Record]:
        """
        Append a record and persist the collection.

        `build` receives the current snapshot and returns extra fields for the
        new record (e.g. an order number derived from the collection size).
        Returns the stored record, or None if the write failed.
        """
        with self.lock(name):
            records = self.load(name)
            # Identifiers are always server-assigned
            record = {"id": new_id(), **{k: v for k, v in data.items() if k != "id"}}
            if build is not None:
                record.update(build(records))
            records.append(record)
            if not self.save(name, records):
                return None
        return record

    def update_document(self, name: str, record_id: str, changes: Record,
                        apply: Optional[Callable[[Record, Record], Record]] = None):
        """
        Merge `changes` into the record with `record_id`.

        Returns (record, saved): record is None when no such id exists.
        `apply(current, changes)` may return the merged record to store.
        """
        with self.lock(name):
            records = self.load(name)
            index = next((i for i, r in enumerate(records) if r.get("id") == record_id), None)
            if index is None:
                return None, False
            if apply is not None:
                updated = apply(records[index], changes)
            else:
                updated = {**records[index], **changes}
            records[index] = updated
            return updated, self.save(name, records)

    def delete_document(self, name: str, record_id: str):
        """Returns (removed_record, saved); removed_record is None when not found."""
        with self.lock(name):
            records = self.load(name)
            index = next((i for i, r in enumerate(records) if r.get("id") == record_id), None)
            if index is None:
                return None, False
            removed = records.pop(index)
            return removed, self.save(name, records)
