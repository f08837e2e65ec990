#!/usr/bin/env python3
"""Synthetic beneficiary spreadsheet generator for load testing.

Writes a workbook with the full recognised header row followed by random
beneficiary rows. A configurable share of rows gets a broken or missing
email so the validation / --strip-invalid path can be exercised too.

Emails repeat with a configurable probability so that re-runs hit the
"existing contact" branches of the reconciler.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from beneficiary_import.excel.headers import EQUIPMENT_FLAG_FIELDS
from beneficiary_import.excel.reader import SAMPLE_HEADERS, write_matrix

FIRST_NAMES = ["Juan", "María", "José", "Ana", "Luis", "Carmen", "Pedro", "Rosa", "Carlos", "Luz"]
SURNAMES = ["Pérez", "Rivera", "Rodríguez", "Santiago", "Torres", "Ortiz", "Colón", "Díaz", "Cruz", "Vega"]
MUNICIPALITIES = ["San Juan", "Bayamón", "Carolina", "Ponce", "Caguas", "Mayagüez", "Arecibo"]
ROOF_TYPES = ["Flat", "Inclined/pitched"]
YES_NO = ["Yes", "No"]


def _leading_columns() -> int:
    # everything before the first equipment flag column
    return len(SAMPLE_HEADERS) - len(EQUIPMENT_FLAG_FIELDS)


def generate_rows(rows: int, *, invalid_ratio: float = 0.0, repeat_ratio: float = 0.0, seed: int = 42) -> list[list[Any]]:
    """Generate ``rows`` data rows matching SAMPLE_HEADERS column order.

    Args:
        rows: Number of data rows
        invalid_ratio: Share of rows with an unusable email (empty or malformed)
        repeat_ratio: Share of rows reusing an email seen earlier in the file
        seed: Random seed for reproducible data
    """
    np.random.seed(seed)
    dates = pd.date_range(pd.Timestamp("2023-01-01"), pd.Timestamp("2024-12-31"), periods=100)

    data: list[list[Any]] = []
    emails: list[str] = []
    flags = len(SAMPLE_HEADERS) - _leading_columns()
    for i in range(rows):
        first = np.random.choice(FIRST_NAMES)
        surnames = np.random.choice(SURNAMES, 2)
        municipality = np.random.choice(MUNICIPALITIES)
        street = f"{np.random.randint(1, 999)} Calle {np.random.choice(SURNAMES)}"
        zip_code = f"00{np.random.randint(600, 990)}"

        if emails and np.random.random() < repeat_ratio:
            email = emails[np.random.randint(0, len(emails))]
        else:
            email = f"beneficiary{i + 1}@example.com"
            emails.append(email)
        if np.random.random() < invalid_ratio:
            email = "" if np.random.random() < 0.5 else email.replace("@", " at ")

        leading = [
            pd.Timestamp(np.random.choice(dates)).strftime("%m/%d/%Y"),
            f"{i + 1:05d}",
            f"{first} {surnames[0]} {surnames[1]}",
            f"{np.random.uniform(17.9, 18.5):.4f}",
            f"{np.random.uniform(-67.2, -65.6):.4f}",
            f"787-555-{np.random.randint(0, 9999):04d}",
            "",
            email,
            municipality,
            street,
            municipality,
            zip_code,
            street,
            municipality,
            municipality,
            zip_code,
            str(np.random.randint(1940, 2015)),
            np.random.choice(YES_NO),
            np.random.choice(ROOF_TYPES),
            np.random.choice(YES_NO),
            np.random.choice(YES_NO),
            np.random.choice(YES_NO),
            "",
        ]
        equipment = np.random.choice(["TRUE", "FALSE"], flags, p=[0.1, 0.9]).tolist()
        data.append(leading + equipment)
    return data


def create_dataset(output_path: Path, rows: int, **kwargs: Any) -> Path:
    matrix: list[list[Any]] = [list(SAMPLE_HEADERS)]
    matrix.extend(generate_rows(rows, **kwargs))
    return write_matrix(output_path, matrix, sheet_name="Beneficiaries")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic beneficiary spreadsheet",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # 1,000 clean rows
  %(prog)s data/beneficiaries.xlsx --rows 1000

  # 5% broken emails, 20% repeated beneficiaries, as CSV
  %(prog)s data/mixed.csv --rows 5000 --invalid-ratio 0.05 --repeat-ratio 0.2
        """,
    )
    parser.add_argument("output", type=Path, help="Output .xlsx or .csv path")
    parser.add_argument("--rows", type=int, default=1_000, help="Number of data rows (default: 1,000)")
    parser.add_argument("--invalid-ratio", type=float, default=0.0, help="Share of rows with a bad email")
    parser.add_argument("--repeat-ratio", type=float, default=0.0, help="Share of rows repeating an earlier email")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    for name in ("invalid_ratio", "repeat_ratio"):
        if not 0.0 <= getattr(args, name) <= 1.0:
            print(f"Error: --{name.replace('_', '-')} must be between 0 and 1", file=sys.stderr)
            return 1

    path = create_dataset(
        args.output,
        args.rows,
        invalid_ratio=args.invalid_ratio,
        repeat_ratio=args.repeat_ratio,
        seed=args.seed,
    )
    print(f"Created {path} with {args.rows:,} rows")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
