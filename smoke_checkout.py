#!/usr/bin/env python3
"""
Smoke test for a running order server.

Creates an order, confirms it, then confirms it again to check that the
identifier is single-use. Run the server with TOSS_MOCK_MODE=true unless
you have a real Toss test payment key.

Usage:
    python smoke_checkout.py 1000 "Widget"
    python smoke_checkout.py 1000 "Widget" --payment-key pay_decline
"""
import argparse
import json
import sys

import requests


def post(base_url: str, path: str, payload: dict) -> requests.Response:
    response = requests.post(f"{base_url}{path}", json=payload, timeout=15)
    print(f"POST {path} -> HTTP {response.status_code}")
    print(json.dumps(response.json(), ensure_ascii=False, indent=2))
    return response


def run_checkout(base_url: str, amount: int, order_name: str, payment_key: str) -> int:
    """Run create -> confirm -> confirm and return a process exit code."""
    created = post(base_url, "/create-order", {"amount": amount, "orderName": order_name})
    if created.status_code != 200:
        print("❌ Order creation failed")
        return 1

    order_id = created.json()["orderId"]
    confirm_payload = {"paymentKey": payment_key, "orderId": order_id, "amount": amount}

    print("=" * 70)
    first = post(base_url, "/confirm", confirm_payload)
    if not first.json().get("ok"):
        print("❌ Confirmation failed")
        return 1

    print("=" * 70)
    second = post(base_url, "/confirm", confirm_payload)
    if second.json().get("code") != "ORDER_NOT_FOUND":
        print("❌ Order identifier was accepted twice")
        return 1

    print("✅ Order confirmed once and rejected on replay")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("amount", type=int)
    parser.add_argument("order_name", nargs="?", default="Widget")
    parser.add_argument("--payment-key", default="pay_smoke_test")
    parser.add_argument("--base-url", default="http://localhost:4242")
    args = parser.parse_args()

    try:
        sys.exit(run_checkout(args.base_url, args.amount, args.order_name, args.payment_key))
    except requests.exceptions.ConnectionError:
        print(f"❌ Could not connect to {args.base_url}. Is the server running?")
        sys.exit(1)
