"""
Sales stats and tabular export built on pandas.
"""
import logging
import os
from typing import Any, Dict, Iterable, List

import pandas as pd

from core.models import Order, OrderStatus, Transaction

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "order_id",
    "status",
    "customer_name",
    "customer_adds",
    "items",
    "order_total",
    "payment_method",
    "payment_state",
    "transaction_amount",
    "slip_count",
    "slip_total",
    "created_at",
]


def store_stats(orders: List[Order], transactions: List[Transaction]) -> Dict[str, Any]:
    """
    Sales figures over FINISHED orders, in the backend's /stats shape.

    Sales come from each order's transaction total; product figures come from
    the ordered lines. An order without a transaction counts with zero sales.
    """
    finished = [o for o in orders if o.status is OrderStatus.FINISHED]
    by_order = {t.order_id: t for t in transactions if t.order_id}

    sales = pd.DataFrame(
        [
            {
                "order_id": o.id,
                "total_amount": by_order[o.id].total_amount if o.id in by_order else 0.0,
                "created_at": by_order[o.id].created_at if o.id in by_order else o.created_at,
            }
            for o in finished
        ],
        columns=["order_id", "total_amount", "created_at"],
    )
    total_orders = len(sales)
    total_sales = float(sales["total_amount"].sum()) if total_orders else 0.0

    return {
        "totalOrders": total_orders,
        "totalSales": total_sales,
        "averageOrderValue": total_sales / total_orders if total_orders else 0.0,
        "productStats": _product_stats(finished),
        "dailySales": _daily_sales(sales),
    }


def _product_stats(finished: List[Order]) -> List[Dict[str, Any]]:
    lines = pd.DataFrame(
        [
            {"product_id": p.product_id, "name": p.name, "line_total": p.line_total}
            for o in finished
            for p in o.product_info
        ],
        columns=["product_id", "name", "line_total"],
    )
    if lines.empty:
        return []

    grouped = (
        lines.groupby("product_id", sort=False)
        .agg(
            name=("name", "first"),
            total_sale=("line_total", "sum"),
            total_orders=("line_total", "size"),
        )
        .reset_index()
        .sort_values("total_orders", ascending=False, kind="stable")
    )
    return [
        {
            "productId": row.product_id,
            "name": row.name,
            "totalSale": float(row.total_sale),
            "totalOrders": int(row.total_orders),
        }
        for row in grouped.itertuples(index=False)
    ]


def _daily_sales(sales: pd.DataFrame) -> List[Dict[str, Any]]:
    dated = sales.dropna(subset=["created_at"]).copy()
    if dated.empty:
        return []

    stamps = pd.to_datetime(dated["created_at"], errors="coerce", utc=True, format="ISO8601")
    dated["date"] = stamps.dt.strftime("%Y-%m-%d")
    dated = dated.dropna(subset=["date"])
    if dated.empty:
        return []

    daily = (
        dated.groupby("date")
        .agg(total_sales=("total_amount", "sum"), total_orders=("order_id", "size"))
        .reset_index()
        .sort_values("date")
    )
    return [
        {"date": row.date, "totalSales": float(row.total_sales), "totalOrders": int(row.total_orders)}
        for row in daily.itertuples(index=False)
    ]


def export_frame(rows: Iterable[Any]) -> pd.DataFrame:
    """
    Flatten order rows (objects with ``order`` and ``transaction``) into one
    DataFrame line per order.
    """
    records = []
    for row in rows:
        order, transaction = row.order, row.transaction
        records.append(
            {
                "order_id": order.id,
                "status": order.status.value,
                "customer_name": order.customer_name,
                "customer_adds": order.customer_adds,
                "items": order.item_count,
                "order_total": order.total,
                "payment_method": transaction.payment_method if transaction else None,
                "payment_state": transaction.state.value if transaction else None,
                "transaction_amount": transaction.total_amount if transaction else None,
                "slip_count": len(transaction.slip) if transaction else 0,
                "slip_total": transaction.slip_total if transaction else 0.0,
                "created_at": order.created_at,
            }
        )
    return pd.DataFrame(records, columns=EXPORT_COLUMNS)


def write_export(frame: pd.DataFrame, path: str) -> str:
    """Write to .xlsx (openpyxl) or .csv depending on the file suffix."""
    folder = os.path.dirname(path)
    if folder:
        os.makedirs(folder, exist_ok=True)
    if path.lower().endswith(".csv"):
        frame.to_csv(path, index=False)
    else:
        frame.to_excel(path, index=False, sheet_name="Orders", engine="openpyxl")
    logger.info(f"Exported {len(frame)} orders to {path}")
    return path
