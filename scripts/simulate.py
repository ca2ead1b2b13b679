"""
Order Flow Simulation Script

Fires concurrent landing-page orders at a running storefront API and
reports how many were accepted. Useful to watch the admin table refresh
through the change feed while orders arrive.

Run from project root: python scripts/simulate.py --orders 30
"""

import asyncio
import sys
import random
import time
import argparse
from datetime import datetime
from typing import Any

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:8001"
TOTAL_ORDERS = 20

# Sample data for random orders
FIRST_NAMES = ["سارة", "منى", "هبة", "ياسمين", "نورا", "ريم", "دينا", "ملك", "شيماء", "آية"]
LAST_NAMES = ["أحمد", "محمد", "علي", "حسن", "إبراهيم", "محمود", "مصطفى", "سعيد"]
STREETS = ["شارع التحرير", "شارع الهرم", "شارع فيصل", "شارع جامعة الدول", "كورنيش النيل"]
GOVERNORATES = ["القاهرة", "الجيزة", "الإسكندرية", "الدقهلية", "أسيوط", "الشرقية", "المنيا"]
PREFIXES = ["010", "011", "012", "015"]


def generate_order_payload() -> dict[str, Any]:
    """Generate a valid order form submission."""
    return {
        "customer_name": f"{random.choice(FIRST_NAMES)} {random.choice(LAST_NAMES)}",
        "phone": random.choice(PREFIXES) + f"{random.randint(0, 99999999):08d}",
        "address": f"{random.randint(1, 200)} {random.choice(STREETS)}، الدور {random.randint(1, 9)}",
        "governorate": random.choice(GOVERNORATES),
        "notes": random.choice(["", "الاتصال قبل التوصيل", "التوصيل بعد الخامسة"]),
    }


async def send_order(client: httpx.AsyncClient, order_num: int) -> dict[str, Any]:
    """Submit one order through the order form endpoint."""
    start_time = time.time()

    try:
        response = await client.post(
            f"{API_BASE_URL}/api/orders",
            json=generate_order_payload(),
            timeout=30.0,
        )
    except httpx.HTTPError as e:
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": round(time.time() - start_time, 3),
        }

    elapsed = round(time.time() - start_time, 3)
    if response.status_code == 201:
        order = response.json().get("order") or {}
        return {
            "order_num": order_num,
            "success": True,
            "order_id": order.get("id"),
            "total": order.get("total_amount", 0),
            "time": elapsed,
        }
    return {
        "order_num": order_num,
        "success": False,
        "error": response.text[:100],
        "time": elapsed,
    }


async def run_simulation(num_orders: int = TOTAL_ORDERS) -> dict[str, Any]:
    """Fire ``num_orders`` concurrent orders and print a summary."""
    print("=" * 70)
    print("🔥 ORDER FLOW SIMULATION")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()
    async with httpx.AsyncClient() as client:
        results = await asyncio.gather(*(send_order(client, i + 1) for i in range(num_orders)))
    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    print(f"\n✅ Successful Orders: {len(successful)}/{num_orders}")
    print(f"❌ Failed Orders: {len(failed)}/{num_orders}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        revenue = sum(r["total"] for r in successful)
        print(f"   Average Response: {avg_time}s")
        print(f"   💰 Total Revenue: {revenue:,.0f} ج.م")

    if failed:
        print("\n⚠️  Failed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


async def check_health() -> bool:
    async with httpx.AsyncClient() as client:
        try:
            response = await client.get(f"{API_BASE_URL}/health")
        except httpx.HTTPError as e:
            print(f"   ❌ Health check failed: {e}")
            return False
    data = response.json()
    print(f"   Status: {data.get('status')}")
    print(f"   Orders: {data.get('order_repository')}  Feed: {data.get('change_feed')}")
    return response.status_code == 200


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Order Flow Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--url", default=API_BASE_URL, help="Storefront API base URL")
    args = parser.parse_args()
    API_BASE_URL = args.url.rstrip("/")

    if not asyncio.run(check_health()):
        sys.exit(1)

    asyncio.run(run_simulation(num_orders=args.orders))
