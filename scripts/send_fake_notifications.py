"""
Push fake PM readings to a running accessory's notification inbox.

Usage examples
──────────────
python scripts/send_fake_notifications.py --notification-id office \
    --password secret --count 10 --interval 2
"""

import argparse
import random
import time

import requests

BASE_URL = "http://localhost:8581"


# ─────────────────────────── HTTP helper ────────────────────────────
def post(endpoint: str, payload: dict, password: str | None) -> None:
    headers = {"Authorization": password} if password else {}
    r = requests.post(f"{BASE_URL}{endpoint}", json=payload, headers=headers, timeout=5)
    r.raise_for_status()


# ─────────────────────────── API helpers ────────────────────────────
def send_reading(notification_id: str, password: str | None) -> None:
    endpoint = f"/notifications/{notification_id}"
    post(endpoint, {"characteristic": "PM10Density", "value": random.randint(5, 120)}, password)
    post(endpoint, {"characteristic": "PM2.5Density", "value": random.randint(2, 80)}, password)


# ───────────────────────────── CLI ─────────────────────────────
def main() -> None:
    global BASE_URL

    parser = argparse.ArgumentParser()
    parser.add_argument("--notification-id", required=True)
    parser.add_argument("--password")
    parser.add_argument("--count", type=int, default=1)
    parser.add_argument("--interval", type=float, default=1.0, help="seconds between readings")
    parser.add_argument("--base-url", default=BASE_URL)
    args = parser.parse_args()

    BASE_URL = args.base_url
    for i in range(args.count):
        send_reading(args.notification_id, args.password)
        print(f"✔ sent reading {i + 1}/{args.count}")
        if i + 1 < args.count:
            time.sleep(args.interval)


if __name__ == "__main__":
    main()
