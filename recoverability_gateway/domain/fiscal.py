"""Fiscal calendar and report period resolution

Fiscal year N runs 1 September of N-1 through 31 August of N (FY2024 = Sep 2023 - Aug 2024).
"""

from datetime import date
from typing import List, Tuple

from recoverability_gateway.domain.exceptions import InvalidReportRequestError
from recoverability_gateway.domain.models import FiscalMonth, ReportPeriod, ReportRequest
from recoverability_gateway.utils.date_utils import add_months, month_end, month_start

FISCAL_MONTHS: List[str] = ["Sep", "Oct", "Nov", "Dec", "Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug"]
FISCAL_YEAR_START_MONTH = 9

MODES = ("fiscal", "custom")


def fiscal_year_for(day: date) -> int:
    """Fiscal year containing a calendar date"""
    return day.year + 1 if day.month >= FISCAL_YEAR_START_MONTH else day.year


def fiscal_year_range(fiscal_year: int) -> Tuple[date, date]:
    """(first day, last day) of a fiscal year"""
    return date(fiscal_year - 1, FISCAL_YEAR_START_MONTH, 1), date(fiscal_year, FISCAL_YEAR_START_MONTH - 1, 31)


def fiscal_year_months(fiscal_year: int) -> List[FiscalMonth]:
    """The twelve contiguous months of a fiscal year, Sep first"""
    return calendar_months(*fiscal_year_range(fiscal_year))


def calendar_months(start: date, end: date) -> List[FiscalMonth]:
    """Every calendar month touching [start, end], labelled Sep ... Aug"""
    months = []
    current = month_start(start)
    while current <= end:
        label = FISCAL_MONTHS[(current.month - FISCAL_YEAR_START_MONTH) % 12]
        months.append(FiscalMonth(label=label, start=current, end=month_end(current)))
        current = add_months(current, 1)
    return months


def fiscal_month_range(fiscal_year: int, label: str) -> Tuple[date, date]:
    """(first day, last day) of a fiscal month given by its label"""
    validate_fiscal_month(label)
    month = fiscal_year_months(fiscal_year)[FISCAL_MONTHS.index(label)]
    return month.start, month.end


def validate_fiscal_month(label: str) -> None:
    if label not in FISCAL_MONTHS:
        raise InvalidReportRequestError(
            f"Invalid fiscal month '{label}'. Must be one of: {', '.join(FISCAL_MONTHS)}"
        )


def resolve_period(request: ReportRequest, today: date) -> ReportPeriod:
    """
    Turn request parameters into a concrete report window.

    - fiscal + month: cumulative aging as of that month's end
    - fiscal, no month: as of fiscal year end
    - custom: caller range snapped to whole calendar months, no monthly rollforward

    Raises:
        InvalidReportRequestError: unknown mode or month label, incomplete or inverted range
    """
    if request.mode not in MODES:
        raise InvalidReportRequestError(f"Invalid mode '{request.mode}'. Must be one of: {', '.join(MODES)}")

    if request.mode == "custom":
        if request.start_date is None or request.end_date is None:
            raise InvalidReportRequestError("Custom mode requires start_date and end_date")
        start = month_start(request.start_date)
        end = month_end(request.end_date)
        if start > end:
            raise InvalidReportRequestError("start_date must not be after end_date")
        return ReportPeriod(mode="custom", window_start=start, window_end=end)

    if request.fiscal_month is not None:
        validate_fiscal_month(request.fiscal_month)

    fiscal_year = request.fiscal_year if request.fiscal_year is not None else fiscal_year_for(today)
    start, end = fiscal_year_range(fiscal_year)
    if request.fiscal_month is not None:
        end = fiscal_month_range(fiscal_year, request.fiscal_month)[1]

    return ReportPeriod(
        mode="fiscal",
        window_start=start,
        window_end=end,
        fiscal_year=fiscal_year,
        fiscal_month=request.fiscal_month,
        months=tuple(fiscal_year_months(fiscal_year)),
    )
