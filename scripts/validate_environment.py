#!/usr/bin/env python3
"""Validate local Batoo environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from datetime import date
from decimal import Decimal
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from batoo.domain.availability import check_clash, compute_price, derive_busy_dates
from batoo.domain.models import BookingWindow, BusyEvent, PriceTerm
from batoo.repository.data_repository import DataRepository
from batoo.services.calendar_service import CalendarService
from batoo.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="batoo-env-")

    # CHECK 1: Python version >= 3.11
    if sys.version_info >= (3, 11):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.11",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable
    package_specs = [
        ("fastapi", "fastapi"),
        ("uvicorn", "uvicorn"),
        ("pydantic", "pydantic"),
        ("httpx", "httpx"),
        ("pytest", "pytest"),
    ]
    import_errors: list[str] = []
    for module_name, dist_name in package_specs:
        try:
            importlib.import_module(module_name)
            version(dist_name)
        except (ImportError, PackageNotFoundError) as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        validation_settings = replace(
            get_settings(),
            database_path=Path(temp_dir) / "batoo_validation.db",
        )
        repository = DataRepository(validation_settings)

        # CHECK 3: Database initialization
        try:
            repository.initialize_database()
            ok, line = _print_result("Database initialization", True)
        except RuntimeError as exc:
            ok, line = _print_result("Database initialization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 4: Demo listing seeding
        try:
            seeded = repository.seed_demo_listings_if_empty()
            if seeded <= 0:
                raise RuntimeError(f"expected demo listings, got {seeded}")
            ok, line = _print_result("Demo listing seeding", True, f": {seeded} listings")
        except RuntimeError as exc:
            ok, line = _print_result("Demo listing seeding", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5: Availability engine smoke test
        busy = derive_busy_dates([BusyEvent(start=date(2025, 8, 10), end=date(2025, 8, 11))])
        window = BookingWindow(date(2025, 8, 9), date(2025, 8, 11))
        pricing = compute_price(window, PriceTerm(unit_price=Decimal("200")))
        clash = check_clash(window, busy)
        engine_ok = pricing.total_price == Decimal("400") and clash.clashing_dates == (
            date(2025, 8, 10),
        )
        ok, line = _print_result(
            "Availability engine",
            engine_ok,
            "" if engine_ok else f"unexpected result {pricing} {clash}",
        )
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 6: Calendar credentials (informational)
        calendar_service = CalendarService(settings=validation_settings)
        detail = (
            ": configured"
            if calendar_service.is_configured
            else ": not configured, busy days will be empty"
        )
        _, line = _print_result("Calendar credentials", True, detail)
        results.append(line)

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Batoo Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
