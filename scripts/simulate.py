"""
Concurrency Simulation Script

Fires concurrent orders from several mock users at a development server
(ENV_MODE=development) and checks that each user only sees their own
orders, newest first, and that confirmations stick.

Run from project root: python scripts/simulate.py
"""

import argparse
import asyncio
import random
import sys
import time
from datetime import datetime
from typing import Any

import httpx

# Configuration
API_BASE_URL = "http://localhost:5000"
TOKEN_PREFIX = "mock-token-"
TOTAL_ORDERS = 50
USERS = ["alice", "bohdan", "carla", "dmytro", "emma"]

DISH_DETAILS = [None, "", "no onions", "extra cheese", "spicy", "well done"]


def auth_headers(user: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {TOKEN_PREFIX}{user}"}


def generate_random_dishes(menu: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Pick 1-4 dishes from the menu, sometimes leaving fields out."""
    dishes = []
    for item in random.sample(menu, k=min(len(menu), random.randint(1, 4))):
        dish: dict[str, Any] = {"name": item.get("name"), "price": item.get("price")}
        details = random.choice(DISH_DETAILS)
        if details is not None:
            dish["details"] = details
        dishes.append(dish)
    return dishes


async def send_order(
    client: httpx.AsyncClient,
    order_num: int,
    user: str,
    menu: list[dict[str, Any]],
) -> dict[str, Any]:
    """Place one order and time it."""
    start_time = time.time()

    try:
        response = await client.post(
            f"{API_BASE_URL}/api/orders",
            json={"dishes": generate_random_dishes(menu)},
            headers=auth_headers(user),
            timeout=30.0,
        )
        elapsed = round(time.time() - start_time, 3)

        if response.status_code == 201:
            return {
                "order_num": order_num,
                "user": user,
                "success": True,
                "order_id": response.json().get("orderId"),
                "time": elapsed,
            }
        return {
            "order_num": order_num,
            "user": user,
            "success": False,
            "error": response.text[:100],
            "time": elapsed,
        }
    except httpx.HTTPError as e:
        elapsed = round(time.time() - start_time, 3)
        return {
            "order_num": order_num,
            "user": user,
            "success": False,
            "error": str(e)[:100],
            "time": elapsed,
        }


async def verify_user_orders(
    client: httpx.AsyncClient,
    user: str,
    expected_ids: set[str],
    confirmed_ids: set[str],
) -> list[str]:
    """Return a list of problems found in the user's order listing."""
    problems = []
    response = await client.get(f"{API_BASE_URL}/api/orders", headers=auth_headers(user))
    if response.status_code != 200:
        return [f"{user}: listing failed ({response.status_code})"]

    orders = response.json()
    seen_ids = {o["id"] for o in orders}

    foreign = [o["id"] for o in orders if o["userId"] != user]
    if foreign:
        problems.append(f"{user}: sees {len(foreign)} foreign orders")
    missing = expected_ids - seen_ids
    if missing:
        problems.append(f"{user}: {len(missing)} orders missing from listing")

    created = [o["createdAt"] or 0 for o in orders]
    if created != sorted(created, reverse=True):
        problems.append(f"{user}: orders not sorted newest first")

    for order in orders:
        want = "received" if order["id"] in confirmed_ids else "processing"
        if order["id"] in expected_ids and order["status"] != want:
            problems.append(f"{user}: order {order['id']} is {order['status']}, expected {want}")

    return problems


async def run_simulation(num_orders: int = TOTAL_ORDERS) -> dict[str, Any]:
    """
    Run the concurrency simulation.

    Args:
        num_orders: Number of orders to place
    """
    print("=" * 70)
    print("🔥 CONCURRENCY SIMULATION")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"👥 Users: {', '.join(USERS)}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient() as client:
        menu_response = await client.get(f"{API_BASE_URL}/api/menu")
        menu_response.raise_for_status()
        menu = menu_response.json() or [{"name": "Pizza", "price": 120}]

        print("\n🚀 Firing orders...\n")
        tasks = [
            send_order(client, i + 1, USERS[i % len(USERS)], menu)
            for i in range(num_orders)
        ]
        results = await asyncio.gather(*tasks)

        successful = [r for r in results if r["success"]]
        failed = [r for r in results if not r["success"]]

        # Confirm every other successful order, concurrently
        to_confirm = successful[::2]
        confirm_responses = await asyncio.gather(*[
            client.patch(
                f"{API_BASE_URL}/api/orders/{r['order_id']}/confirm",
                headers=auth_headers(r["user"]),
            )
            for r in to_confirm
        ])
        confirmed_ids = {
            r["order_id"]
            for r, resp in zip(to_confirm, confirm_responses)
            if resp.status_code == 200
        }

        problems: list[str] = []
        for user in USERS:
            expected = {r["order_id"] for r in successful if r["user"] == user}
            problems.extend(await verify_user_orders(client, user, expected, confirmed_ids))

    total_time = round(time.time() - start_time, 2)

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)

    print(f"\n✅ Successful Orders: {len(successful)}/{num_orders}")
    print(f"❌ Failed Orders: {len(failed)}/{num_orders}")
    print(f"☑️  Confirmed: {len(confirmed_ids)}/{len(to_confirm)}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        print(f"\n📈 Performance Metrics:")
        print(f"   Average Response: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")

    if failed:
        print(f"\n⚠️  Failed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']} [{f['user']}]: {f.get('error', 'Unknown error')}")

    print("\n" + "=" * 70)
    print("🔍 VERIFICATION")
    print("=" * 70)
    if problems:
        for problem in problems:
            print(f"   ❌ {problem}")
    else:
        print("   ✅ Ownership, ordering and status checks passed")
    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "problems": problems,
        "total_time": total_time,
    }


async def test_single_flows() -> bool:
    """Exercise each endpoint once before the simulation."""
    print("\n" + "=" * 70)
    print("🧪 TESTING INDIVIDUAL FLOWS")
    print("=" * 70)

    async with httpx.AsyncClient() as client:
        print("\n1️⃣ Health Check...")
        response = await client.get(f"{API_BASE_URL}/health")
        if response.status_code != 200:
            print(f"   ❌ Failed: {response.text}")
            return False
        data = response.json()
        print(f"   ✅ Status: {data.get('status')}")
        print(f"   Store: {data.get('store')}")
        print(f"   Identity: {data.get('identity')}")

        print("\n2️⃣ Missing token is rejected...")
        response = await client.get(f"{API_BASE_URL}/api/orders")
        if response.status_code != 401:
            print(f"   ❌ Expected 401, got {response.status_code}")
            return False
        print(f"   ✅ {response.json().get('message')}")

        print("\n3️⃣ Empty dishes list is rejected...")
        response = await client.post(
            f"{API_BASE_URL}/api/orders",
            json={"dishes": []},
            headers=auth_headers(USERS[0]),
        )
        if response.status_code != 400:
            print(f"   ❌ Expected 400, got {response.status_code}")
            return False
        print(f"   ✅ {response.json().get('message')}")

        print("\n4️⃣ Single order...")
        response = await client.post(
            f"{API_BASE_URL}/api/orders",
            json={"dishes": [{"name": "Pizza", "price": 120, "details": "no onions"}]},
            headers=auth_headers(USERS[0]),
        )
        if response.status_code != 201:
            print(f"   ❌ Failed: {response.text[:100]}")
            return False
        print(f"   ✅ Order {response.json().get('orderId')} created")

    print("\n" + "=" * 70)
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Concurrency Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--base-url", default=API_BASE_URL, help="API base URL")
    parser.add_argument("--skip-tests", action="store_true", help="Skip individual tests")
    args = parser.parse_args()

    API_BASE_URL = args.base_url

    if not args.skip_tests:
        if not asyncio.run(test_single_flows()):
            print("\n❌ Pre-flight tests failed. Fix issues before running simulation.")
            sys.exit(1)
        print("\n✅ Pre-flight tests passed!")

    summary = asyncio.run(run_simulation(args.orders))
    sys.exit(1 if summary["problems"] or summary["failed"] else 0)
