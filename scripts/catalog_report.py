#!/usr/bin/env python3
"""Print the catalog image report of a running storefront backend.

Flow:
1) GET /api/v1/reports/catalog-images with the requested threshold
2) Print one line per (category, product) with its image locations
"""

from __future__ import annotations

import argparse
import os
import sys
from typing import Any, Dict, List, Optional

import httpx


DEFAULT_BASE_URL = "http://127.0.0.1:8000"
REPORT_PATH = "/api/v1/reports/catalog-images"


class ApiError(RuntimeError):
    pass


def _json_or_text(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _require_success(response: httpx.Response, context: str) -> Dict[str, Any]:
    payload = _json_or_text(response)
    if response.status_code >= 400:
        raise ApiError(f"{context} failed ({response.status_code}): {payload}")
    if not isinstance(payload, dict):
        raise ApiError(f"{context} returned non-JSON payload: {payload}")
    if payload.get("success") is False:
        raise ApiError(f"{context} returned success=false: {payload}")
    return payload


def fetch_report(client: httpx.Client, min_price: Optional[str]) -> Dict[str, Any]:
    params = {"min_price": min_price} if min_price is not None else {}
    payload = _require_success(client.get(REPORT_PATH, params=params), "Catalog image report")
    return payload.get("data") or {}


def format_rows(rows: List[Dict[str, Any]]) -> List[str]:
    """Render report rows as aligned text lines, header first."""
    header = ("CATEGORY", "PRODUCT", "PRICE", "IMAGES")
    table = [header] + [
        (
            str(row["category_name"]),
            str(row["product_name"]),
            f"{float(row['price']):.2f}",
            ",".join(row["image_urls"]) or "-",
        )
        for row in rows
    ]
    widths = [max(len(line[col]) for line in table) for col in range(3)]
    return [
        f"{line[0]:<{widths[0]}}  {line[1]:<{widths[1]}}  {line[2]:>{widths[2]}}  {line[3]}"
        for line in table
    ]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Print the catalog image report from the storefront backend API"
    )
    parser.add_argument("--base-url", default=os.getenv("STOREFRONT_BASE_URL", DEFAULT_BASE_URL))
    parser.add_argument(
        "--min-price",
        default=None,
        help="Exclusive lower price bound (server default when omitted)",
    )
    parser.add_argument("--timeout", type=float, default=10.0)
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    with httpx.Client(base_url=args.base_url.rstrip("/"), timeout=args.timeout) as client:
        report = fetch_report(client, args.min_price)

    rows = report.get("rows", [])
    print(f"Products priced above {report.get('min_price')}: {len(rows)}")
    for line in format_rows(rows):
        print(line)
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except (ApiError, httpx.HTTPError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        raise SystemExit(1)
