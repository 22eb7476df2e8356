# app/services/inventory_service.py
import logging
from collections import OrderedDict
from typing import Dict, Iterable, List, Tuple

from fastapi import HTTPException
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.models.product_size import ProductSize

logger = logging.getLogger(__name__)


def _requested_quantities(items: Iterable) -> "OrderedDict[Tuple[int, str], dict]":
    """Merge lines that share a (product_id, size) key."""
    merged: "OrderedDict[Tuple[int, str], dict]" = OrderedDict()
    for item in items:
        key = (item.product_id, item.size)
        if key not in merged:
            merged[key] = {"product_name": item.product_name, "quantity": 0}
        merged[key]["quantity"] += item.quantity
    return merged


def reserve_stock(session: Session, items: Iterable) -> None:
    """
    Take stock for every line of a new order.

    Runs inside the caller's unit of work; the caller rolls back when
    this raises.
    """
    requested = _requested_quantities(items)

    for (product_id, size), line in requested.items():
        product_size = session.get(ProductSize, (product_id, size))
        if not product_size:
            raise HTTPException(400, f"Size {size} not available for this product")

        if product_size.stock < line["quantity"]:
            raise HTTPException(
                400,
                f"Insufficient stock for {line['product_name']} (Size: {size}). "
                f"Available: {product_size.stock}, Requested: {line['quantity']}",
            )

    for (product_id, size), line in requested.items():
        result = session.execute(
            update(ProductSize)
            .where(
                ProductSize.product_id == product_id,
                ProductSize.size == size,
                ProductSize.stock >= line["quantity"],
            )
            .values(stock=ProductSize.stock - line["quantity"])
        )
        # someone else took the stock between the check and the update
        if result.rowcount != 1:
            raise HTTPException(
                400, f"Insufficient stock for {line['product_name']} (Size: {size})"
            )

        logger.info(f"Reserved {line['quantity']} of product {product_id} size {size}")


def restore_stock(session: Session, items: Iterable) -> Tuple[List[Dict], List[Dict]]:
    """
    Give back the stock of cancelled order lines.

    Best effort: a line whose size row is gone or whose update fails is
    logged and reported, the remaining lines are still restored. Each
    update runs in its own savepoint so a failed statement does not abort
    the surrounding transaction.
    """
    restored: List[Dict] = []
    failures: List[Dict] = []

    for item in items:
        entry = {
            "product_id": item.product_id,
            "size": item.size,
            "quantity": item.quantity,
        }
        try:
            with session.begin_nested():
                result = session.execute(
                    update(ProductSize)
                    .where(
                        ProductSize.product_id == item.product_id,
                        ProductSize.size == item.size,
                    )
                    .values(stock=ProductSize.stock + item.quantity)
                )
        except SQLAlchemyError:
            logger.exception(
                f"Failed to restore stock for product {item.product_id} size {item.size}"
            )
            failures.append(entry)
            continue

        if result.rowcount == 0:
            logger.error(
                f"Failed to restore stock for product {item.product_id} size {item.size}: "
                "size no longer exists"
            )
            failures.append(entry)
            continue

        restored.append(entry)

    return restored, failures
