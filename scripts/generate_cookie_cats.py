#!/usr/bin/env python3
"""
Generate a Cookie Cats style A/B test dataset for Game Insights development.
Usage (from the repository root):
    python scripts/generate_cookie_cats.py [--players N] [--seed S]
Creates: data/csv-tests/cookie_cats.csv
"""
import argparse
import math
import random
from pathlib import Path

import pandas as pd

OUT_PATH = Path(__file__).parent.parent / "data" / "csv-tests" / "cookie_cats.csv"

TOTAL_PLAYERS = 90189
FIRST_USERID = 116
GATE_30_RATIO = 0.5

# Gate 30 retains slightly better than gate 40
RETENTION_1 = {"gate_30": 0.448, "gate_40": 0.442}
RETENTION_7 = {"gate_30": 0.190, "gate_40": 0.182}

ROUNDS_MEDIAN = 16
ROUNDS_MAX = 2961


def exponential_rounds(median: float) -> int:
    lam = math.log(2) / median
    return int(-math.log(1.0 - random.random()) / lam)


def generate_row(userid: int) -> dict:
    version = "gate_30" if random.random() < GATE_30_RATIO else "gate_40"
    rounds = min(exponential_rounds(ROUNDS_MEDIAN), ROUNDS_MAX)

    # players with more rounds are more likely to come back
    play_factor = min(rounds / 50, 1.0)
    r1 = RETENTION_1[version]
    r7 = RETENTION_7[version]
    retention_1 = random.random() < r1 * (0.5 + 0.5 * play_factor)
    retention_7 = retention_1 and random.random() < r7 / r1

    return {
        "userid": userid,
        "version": version,
        "sum_gamerounds": rounds,
        "retention_1": retention_1,
        "retention_7": retention_7,
    }


def generate(players: int) -> pd.DataFrame:
    return pd.DataFrame([generate_row(FIRST_USERID + i) for i in range(players)])


def summarize(df: pd.DataFrame):
    print("\n=== Cookie Cats Dataset Statistics ===")
    print(f"Total players: {len(df)}")
    for version, group in df.groupby("version"):
        print(f"\n{version} ({len(group)} players):")
        print(f"  D1 Retention: {group['retention_1'].mean() * 100:.2f}%")
        print(f"  D7 Retention: {group['retention_7'].mean() * 100:.2f}%")
        print(f"  Avg Game Rounds: {group['sum_gamerounds'].mean():.1f}")


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--players", type=int, default=TOTAL_PLAYERS)
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args()

    if args.seed is not None:
        random.seed(args.seed)

    print("Generating Cookie Cats dataset...")
    df = generate(args.players)

    OUT_PATH.parent.mkdir(parents=True, exist_ok=True)
    # lower-case booleans so the upload parser reads them back as bools
    out = df.copy()
    for col in ("retention_1", "retention_7"):
        out[col] = out[col].map({True: "true", False: "false"})
    out.to_csv(OUT_PATH, index=False)
    print(f"Dataset saved to: {OUT_PATH}")
    print(f"File size: {OUT_PATH.stat().st_size / 1024:.1f} KB")

    summarize(df)


if __name__ == "__main__":
    main()
