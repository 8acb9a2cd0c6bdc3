#!/usr/bin/env python3
"""Sample settlement report generator.

Generates a settlement detail CSV in the layout the enricher expects:
- Row 1: column header
- then, per currency, a section header row (currency code in the first column
  only) followed by that currency's transfers

With --seed-redis the script also stores `<prefix>_in_<id>` /
`<prefix>_out_<id>` payloads so a local run finds most of the transfers.
"""
from __future__ import annotations

import argparse
import json
import random
import sys
import uuid
from pathlib import Path

import pandas as pd
import redis

COLUMNS = [
    "Sender DFSP",
    "Receiver DFSP",
    "Transfer ID",
    "Transaction Type",
    "Amount",
    "Currency",
]
CURRENCIES = ["MWK", "TZS", "USD"]
DFSPS = ["payerfsp", "payeefsp", "bankone", "mobilemoney"]


def generate_transfers(rows: int, seed: int = 42) -> pd.DataFrame:
    rng = random.Random(seed)
    records = []
    for _ in range(rows):
        sender, receiver = rng.sample(DFSPS, 2)
        records.append(
            {
                "Sender DFSP": sender,
                "Receiver DFSP": receiver,
                "Transfer ID": str(uuid.UUID(int=rng.getrandbits(128))),
                "Transaction Type": rng.choice(["TRANSFER", "PAYMENT", "REFUND"]),
                "Amount": f"{rng.uniform(1, 50000):.2f}",
                "Currency": rng.choice(CURRENCIES),
            }
        )
    return pd.DataFrame(records, columns=COLUMNS)


def write_sectioned_csv(df: pd.DataFrame, output_path: Path) -> None:
    """Write the frame grouped by currency, each group preceded by its label row."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    blank = [""] * (len(COLUMNS) - 1)
    parts = []
    for currency, group in df.groupby("Currency", sort=True):
        parts.append(pd.DataFrame([[currency, *blank]], columns=COLUMNS))
        parts.append(group)
    pd.concat(parts, ignore_index=True).to_csv(output_path, index=False)


def seed_redis(df: pd.DataFrame, url: str, key_prefix: str, hit_ratio: float, seed: int = 42) -> int:
    """Store lookup payloads for roughly `hit_ratio` of the transfers."""
    rng = random.Random(seed)
    client = redis.Redis.from_url(url, decode_responses=True)
    stored = 0
    try:
        for transfer_id in df["Transfer ID"]:
            if rng.random() >= hit_ratio:
                continue
            direction = rng.choice(["in", "out"])
            payload = {"transferId": transfer_id, "homeTransactionId": f"HOME-{uuid.uuid4().hex[:12]}"}
            client.set(f"{key_prefix}_{direction}_{transfer_id}", json.dumps(payload))
            stored += 1
    finally:
        client.close()
    return stored


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate a sample settlement detail report")
    parser.add_argument("--rows", type=int, default=100, help="Number of transfers")
    parser.add_argument("--output", type=Path, default=Path("data/sample_settlement.csv"))
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--seed-redis", action="store_true", help="Store lookup payloads in Redis")
    parser.add_argument("--redis-url", default="redis://localhost:6379")
    parser.add_argument("--key-prefix", default="transferModel")
    parser.add_argument("--hit-ratio", type=float, default=0.8)
    args = parser.parse_args()

    if args.rows < 1:
        print("--rows must be positive", file=sys.stderr)
        return 1

    df = generate_transfers(args.rows, seed=args.seed)
    write_sectioned_csv(df, args.output)
    print(f"wrote {len(df)} transfers to {args.output}")

    if args.seed_redis:
        stored = seed_redis(df, args.redis_url, args.key_prefix, args.hit_ratio, seed=args.seed)
        print(f"stored {stored} payloads in {args.redis_url}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
