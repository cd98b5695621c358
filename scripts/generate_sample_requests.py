"""Generate sample assistant request bodies for local manual testing.

The subscriptions are synthetic (no real user data) and deterministic, so the
files can be diffed between runs. Files are written to data/examples/:

    curl -X POST localhost:8000/api/gemini/suggestions \
        -H 'Content-Type: application/json' -d @data/examples/suggestions_request.json
"""

from __future__ import annotations

import json
from datetime import date, timedelta
from pathlib import Path
from typing import Any

_CATALOG: list[tuple[str, str, float, str]] = [
    ("Netflix", "Streaming", 15.49, "monthly"),
    ("Spotify", "Music", 10.99, "monthly"),
    ("Disney+", "Streaming", 109.99, "yearly"),
    ("iCloud+", "Cloud Storage", 2.99, "monthly"),
    ("Adobe Creative Cloud", "Software", 59.99, "monthly"),
    ("NYTimes", "News", 17.00, "monthly"),
    ("Gym Membership", "Fitness", 39.00, "monthly"),
    ("Duolingo", "Education", 83.99, "yearly"),
    ("Xbox Game Pass", "Gaming", 16.99, "monthly"),
    ("Dropbox Plus", "Cloud Storage", 119.88, "yearly"),
]


def build_subscriptions(*, count: int, start: date) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for i in range(count):
        name, category, amount, cycle = _CATALOG[i % len(_CATALOG)]
        out.append(
            {
                "id": f"sub_{i + 1:03d}",
                "name": name if i < len(_CATALOG) else f"{name} #{i // len(_CATALOG) + 1}",
                "category": category,
                "amount": amount,
                "currency": "USD",
                "billingCycle": cycle,
                "nextPaymentDate": (start + timedelta(days=(i * 3) % 30)).isoformat(),
                # Every fourth subscription is paused to give the model something to flag.
                "isActive": i % 4 != 3,
            }
        )
    return out


def main(out_dir: Path | None = None) -> list[Path]:
    root = Path(__file__).resolve().parents[1]
    out_dir = out_dir or root / "data" / "examples"
    out_dir.mkdir(parents=True, exist_ok=True)

    start = date(2026, 1, 1)
    bodies: dict[str, dict[str, Any]] = {
        "chat_request.json": {
            "messages": [
                {"role": "system", "content": "Answer briefly."},
                {"role": "user", "content": "Which of my subscriptions costs the most per year?"},
            ],
            "context": {"timezone": "UTC", "currency": "USD", "locale": "en-US"},
        },
        "suggestions_request.json": {
            "subscriptions": build_subscriptions(count=10, start=start),
            "preferences": {"defaultCurrency": "USD", "savingsGoal": 50},
        },
        # Exceeds the 200-item cap; the service keeps the most recent 200.
        "suggestions_request_oversized.json": {
            "subscriptions": build_subscriptions(count=250, start=start),
        },
    }

    written: list[Path] = []
    for filename, body in bodies.items():
        path = out_dir / filename
        path.write_text(json.dumps(body, indent=2) + "\n", encoding="utf-8")
        written.append(path)

    print(f"Wrote {len(written)} files to {out_dir}")
    return written


if __name__ == "__main__":
    main()
