"""
Menu Seeding Script

Signs in as an admin and uploads a whole menu through the bulk endpoint.
Run from project root:

    python scripts/seed_menu.py menu.json --email owner@example.com --password secret1

``menu.json`` is a list of items: {"name", "price", "category", "image",
"description"?}. Without a file a small sample menu is uploaded.
"""

import argparse
import asyncio
import json
import sys
from typing import Any, Optional

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

API_BASE_URL = "http://localhost:5001/api/v1"

SAMPLE_MENU = [
    {"name": "Black Forest Cake", "price": 450, "category": "Cake", "image": "🎂",
     "description": "Chocolate sponge, cherries and whipped cream"},
    {"name": "Pineapple Pastry", "price": 60, "category": "Pastry", "image": "🍰"},
    {"name": "Veg Puff", "price": 25, "category": "Snacks", "image": "🥐"},
    {"name": "Paneer Pizza", "price": 199, "category": "Pizza", "image": "🍕"},
    {"name": "Cold Coffee", "price": 80, "category": "Beverages", "image": "🥤"},
    {"name": "Chocolate Donut", "price": 45, "category": "Donuts", "image": "🍩"},
]


def load_menu(path: Optional[str]) -> list[dict[str, Any]]:
    if path is None:
        return SAMPLE_MENU
    with open(path, encoding="utf-8") as fh:
        items = json.load(fh)
    if not isinstance(items, list):
        raise SystemExit("❌ Menu file must contain a JSON list")
    return items


async def seed(base_url: str, email: str, password: str, items: list[dict[str, Any]]) -> bool:
    async with httpx.AsyncClient(base_url=base_url, timeout=30.0) as client:
        resp = await client.post("/user/signin", json={"email": email, "password": password})
        if resp.status_code != 200:
            print(f"❌ Sign-in failed ({resp.status_code}): {resp.text}")
            return False

        body = resp.json()
        if body["user"]["role"] != "admin":
            print(f"❌ {email} is not an admin. Run scripts/promote_admin.py first.")
            return False

        headers = {"x-auth-token": body["token"]}
        resp = await client.post("/admin/add-bulk-products", json=items, headers=headers)
        if resp.status_code != 200:
            print(f"❌ Upload failed ({resp.status_code}): {resp.text}")
            return False

        print(f"✅ {resp.json()['count']} menu items uploaded")
        return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Upload a menu via the admin API")
    parser.add_argument("menu", nargs="?", help="Path to a JSON list of menu items")
    parser.add_argument("--email", required=True, help="Admin e-mail")
    parser.add_argument("--password", required=True, help="Admin password")
    parser.add_argument("--url", default=API_BASE_URL, help=f"API base URL (default: {API_BASE_URL})")
    args = parser.parse_args()

    ok = asyncio.run(seed(args.url, args.email, args.password, load_menu(args.menu)))
    sys.exit(0 if ok else 1)
