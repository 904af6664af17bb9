"""
Export a store's orders, joined with their payment state, to Excel or CSV.

Usage:
    python scripts/export_orders.py [--tab all] [--out data/orders_export.xlsx]
"""
import os
import sys
import argparse
import logging

from dotenv import load_dotenv

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from main import build_engine  # noqa: E402
from services.order_store import ALL_VIEW  # noqa: E402
from services.report import export_frame, write_export  # noqa: E402
from config.settings import settings  # noqa: E402


def main(argv=None):
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    parser = argparse.ArgumentParser(description="Export store orders")
    parser.add_argument("--tab", default=ALL_VIEW, help="waiting-payment, waiting-delivery, in-delivery or all")
    parser.add_argument("--out", default=settings.EXPORT_XLSX, help="output .xlsx or .csv path")
    args = parser.parse_args(argv)

    engine = build_engine()
    if not engine.load():
        print("Error fetching data")
        return 1

    frame = export_frame(engine.order_rows(args.tab))
    path = write_export(frame, args.out)
    print("Wrote", len(frame), "orders to:", path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
