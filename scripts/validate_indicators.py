#!/usr/bin/env python3
"""
Validation script for the technical analysis engine.

Runs every indicator family over generated price series and checks the
range and alignment properties the dashboard relies on.
"""

import sys
from datetime import datetime

from folioscope.analysis import TechnicalAnalysisEngine
from folioscope.data import assess_data_quality, generate_sample_price_data

# Color codes for output
GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
RESET = "\033[0m"

SEEDS = (1, 7, 42, 99)


def print_header(text: str) -> None:
    """Print section header."""
    print(f"\n{BLUE}{'=' * 60}{RESET}")
    print(f"{BLUE}{text}{RESET}")
    print(f"{BLUE}{'=' * 60}{RESET}\n")


def print_check(passed: bool, message: str) -> None:
    """Print check result."""
    symbol = f"{GREEN}✓{RESET}" if passed else f"{RED}✗{RESET}"
    print(f"{symbol} {message}")


def check_ranges(result) -> list[str]:
    """Return a description of every out-of-range indicator value."""
    problems = []
    for point in result.indicators.get("rsi", []):
        if not 0 <= point.value <= 100:
            problems.append(f"RSI {point.value:.2f} on {point.date:%Y-%m-%d}")
    for point in result.indicators.get("stochastic", []):
        if not 0 <= point.k <= 100:
            problems.append(f"%K {point.k:.2f} on {point.date:%Y-%m-%d}")
    for point in result.indicators.get("williams_r", []):
        if not -100 <= point.value <= 0:
            problems.append(f"Williams %R {point.value:.2f} on {point.date:%Y-%m-%d}")
    for point in result.indicators.get("bollinger_bands", []):
        if not point.lower <= point.middle <= point.upper:
            problems.append(f"Bollinger band order on {point.date:%Y-%m-%d}")
    for signal in result.signals:
        if not 0 <= signal.strength <= 1:
            problems.append(f"{signal.indicator} strength {signal.strength:.2f}")
    return problems


def main() -> int:
    """Run validation checks."""
    print(f"\n{BLUE}Technical Analysis Validation{RESET}")

    engine = TechnicalAnalysisEngine()
    total_checks = 0
    passed_checks = 0

    for seed in SEEDS:
        print_header(f"Series seed={seed}")

        data = generate_sample_price_data("VALID", 250, seed=seed, start_date=datetime(2024, 1, 1))
        report = assess_data_quality(data)
        if not report.is_acceptable:
            print(f"{YELLOW}{report}{RESET}")

        result = engine.analyze(data, "VALID")

        all_ok = all(outcome.ok for outcome in result.families.values())
        print_check(all_ok, f"All families ran ({len(result.families)})")
        total_checks += 1
        passed_checks += 1 if all_ok else 0

        problems = check_ranges(result)
        print_check(not problems, f"Indicator values in range ({len(result.signals)} signals)")
        for problem in problems[:5]:
            print(f"    {problem}")
        total_checks += 1
        passed_checks += 1 if not problems else 0

        rsi_aligned = len(result.indicators["rsi"]) == len(data) - 14
        print_check(rsi_aligned, "RSI output aligned to period")
        total_checks += 1
        passed_checks += 1 if rsi_aligned else 0

        summary = result.summary
        summary_ok = 0.1 <= summary.confidence <= 0.9 and 0.1 <= summary.strength <= 0.9
        print_check(summary_ok, f"Summary {summary.overall} strength={summary.strength:.2f} confidence={summary.confidence:.2f}")
        total_checks += 1
        passed_checks += 1 if summary_ok else 0

    print_header("Summary")
    color = GREEN if passed_checks == total_checks else RED
    print(f"{color}{passed_checks}/{total_checks} checks passed{RESET}\n")

    return 0 if passed_checks == total_checks else 1


if __name__ == "__main__":
    sys.exit(main())
