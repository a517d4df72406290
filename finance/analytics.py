# finance/analytics.py
# ─────────────────────────────────────────────────────────────────────────────
# ✅ Pure aggregation + pacing maths over revenue/cost entries.
#    Nothing here touches the database: callers pass in entries (model
#    instances or any object with the same attribute names).
#
#    This file includes:
#      • Helpers (date parsing, safe Decimal conversion, period keys/anchors)
#      • Filtering (date range + dimension membership, all AND-ed)
#      • Grouping by period / by dimension, KPI totals, chart helpers
#      • Target pacing + the full annual target breakdown
#
#    Rule of thumb: bad or missing input degrades to zero/empty, it never raises
#    and never produces NaN/Infinity.
# ─────────────────────────────────────────────────────────────────────────────

import calendar
from datetime import date, datetime, timedelta
from decimal import Decimal

from django.utils import timezone

ZERO = Decimal("0")

GROUPINGS = ("week", "month", "quarter", "year")
REVENUE_FIELDS = ("revenue", "net_income", "hours")
COST_FIELDS = ("amount_excl_vat", "vat")

# Pacing thresholds (fraction of expected progress)
ON_PACE_RATIO = 0.95
AT_RISK_RATIO = 0.80

# Sub-periods per target period; a month target counts days instead
SUB_PERIODS = {"year": 12, "quarter": 3}

# remaining_days treats every sub-period as 30 days (see DESIGN.md, open question)
APPROX_DAYS_PER_PERIOD = 30


# ─────────────────────────────────────────────────────────────────────────────
# 🔎 Helpers
# ─────────────────────────────────────────────────────────────────────────────
def parse_date(value):
    """date/datetime/'YYYY-MM-DD…' → date; anything else → None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            return timezone.localtime(value).date()
        return value.date()
    if isinstance(value, date):
        return value
    try:
        y, m, d = map(int, str(value)[:10].split("-"))
        return date(y, m, d)
    except (TypeError, ValueError):
        return None


def entry_date(entry):
    """The date an entry is bucketed on (its `period_date`), or None."""
    return parse_date(getattr(entry, "period_date", None))


def to_decimal(value):
    """Numbers (or numeric strings) → Decimal. None/garbage/NaN → 0."""
    if value is None or isinstance(value, bool):
        return ZERO
    if not isinstance(value, Decimal):
        try:
            value = Decimal(str(value))
        except (ArithmeticError, ValueError, TypeError):
            return ZERO
    return value if value.is_finite() else ZERO


def period_key(d, group_by):
    """Bucket label: '2024-W05', '2024-03', '2024 Q1' or '2024'."""
    if group_by == "week":
        iso = d.isocalendar()
        return f"{iso[0]}-W{iso[1]:02d}"
    if group_by == "quarter":
        return f"{d.year} Q{(d.month - 1) // 3 + 1}"
    if group_by == "year":
        return str(d.year)
    return f"{d.year}-{d.month:02d}"                 # month (also the fallback)


def _period_anchor(d, group_by):
    """First day of the period containing d (Monday for weeks)."""
    if group_by == "week":
        return d - timedelta(days=d.isoweekday() - 1)
    if group_by == "quarter":
        return date(d.year, 3 * ((d.month - 1) // 3) + 1, 1)
    if group_by == "year":
        return date(d.year, 1, 1)
    return d.replace(day=1)


def _next_anchor(anchor, group_by):
    if group_by == "week":
        return anchor + timedelta(days=7)
    step = {"quarter": 3, "year": 12}.get(group_by, 1)
    month_index = anchor.month - 1 + step
    return date(anchor.year + month_index // 12, month_index % 12 + 1, 1)


def iter_periods(start, end, group_by):
    """Yield period anchors covering start..end inclusive."""
    start, end = parse_date(start), parse_date(end)
    if start is None or end is None:
        return
    if start > end:
        start, end = end, start
    cur = _period_anchor(start, group_by)
    while cur <= end:
        yield cur
        cur = _next_anchor(cur, group_by)


def period_bounds(period, anchor):
    """(first_day, last_day) of the year/quarter/month containing anchor."""
    if period == "month":
        return anchor.replace(day=1), anchor.replace(day=calendar.monthrange(anchor.year, anchor.month)[1])
    if period == "quarter":
        first = _period_anchor(anchor, "quarter")
        last_month = first.month + 2
        return first, date(first.year, last_month, calendar.monthrange(first.year, last_month)[1])
    return date(anchor.year, 1, 1), date(anchor.year, 12, 31)


def total_sub_periods(period, start):
    if period == "month":
        return calendar.monthrange(start.year, start.month)[1]
    return SUB_PERIODS.get(period, 12)


# ─────────────────────────────────────────────────────────────────────────────
# 🧹 Filtering
# ─────────────────────────────────────────────────────────────────────────────
def filter_entries(entries, date_from=None, date_to=None, **dimensions):
    """
    Keep entries inside [date_from, date_to] whose dimension values are in the
    allowed sets, e.g. filter_entries(rows, client=["Acme"], billable=True).
    A None or empty filter is ignored. Undated entries only drop out when a
    date bound is given.
    """
    date_from, date_to = parse_date(date_from), parse_date(date_to)

    wanted = {}
    for field, allowed in dimensions.items():
        if allowed is None:
            continue
        if isinstance(allowed, (str, bool, int)):
            allowed = [allowed]
        allowed = set(allowed)
        if allowed:
            wanted[field] = allowed

    kept = []
    for entry in entries:
        if date_from or date_to:
            d = entry_date(entry)
            if d is None:
                continue
            if date_from and d < date_from:
                continue
            if date_to and d > date_to:
                continue
        if any(getattr(entry, field, None) not in allowed for field, allowed in wanted.items()):
            continue
        kept.append(entry)
    return kept


# ─────────────────────────────────────────────────────────────────────────────
# 📦 Grouping + totals
# ─────────────────────────────────────────────────────────────────────────────
def totals(entries, fields):
    """Sum each field over all entries (dated or not)."""
    result = {f: ZERO for f in fields}
    for entry in entries:
        for f in fields:
            result[f] += to_decimal(getattr(entry, f, None))
    return result


def group_by_period(entries, group_by="month", fields=REVENUE_FIELDS):
    """
    One bucket per period present in `entries`, in chronological order:
    [{"period": "2024-03", "revenue": Decimal, ...}, ...].
    Entries without a usable date are left out.
    """
    buckets = {}
    for entry in entries:
        d = entry_date(entry)
        if d is None:
            continue
        bucket = buckets.setdefault(period_key(d, group_by), {f: ZERO for f in fields})
        for f in fields:
            bucket[f] += to_decimal(getattr(entry, f, None))
    return [{"period": key, **buckets[key]} for key in sorted(buckets)]


def group_by_dimension(entries, dimension, fields):
    """Buckets per client/type/vat_section (empty values skipped), biggest first."""
    buckets = {}
    for entry in entries:
        value = getattr(entry, dimension, None)
        if value in (None, ""):
            continue
        bucket = buckets.setdefault(value, {f: ZERO for f in fields})
        for f in fields:
            bucket[f] += to_decimal(getattr(entry, f, None))
    rows = [{dimension: value, **sums} for value, sums in buckets.items()]
    if fields:
        rows.sort(key=lambda row: row[fields[0]], reverse=True)
    return rows


def revenue_kpis(entries):
    entries = list(entries)
    sums = totals(entries, ("revenue", "net_income", "hours", "kilometers"))
    billable_hours = sum((to_decimal(e.hours) for e in entries if getattr(e, "billable", False)), ZERO)
    return {
        "total_revenue": sums["revenue"],
        "total_net_income": sums["net_income"],
        "total_hours": sums["hours"],
        "billable_hours": billable_hours,
        "total_kilometers": sums["kilometers"],
        "avg_hourly_rate": sums["revenue"] / billable_hours if billable_hours > 0 else ZERO,
        "entry_count": len(entries),
    }


def cost_kpis(entries):
    entries = list(entries)
    sums = totals(entries, COST_FIELDS)
    return {
        "total_costs": sums["amount_excl_vat"],
        "total_vat": sums["vat"],
        "total_incl_vat": sums["amount_excl_vat"] + sums["vat"],
        "avg_cost_per_entry": sums["amount_excl_vat"] / len(entries) if entries else ZERO,
        "entry_count": len(entries),
    }


def filter_options(entries):
    """Distinct clients and types, sorted, for filter dropdowns."""
    clients = {e.client for e in entries if getattr(e, "client", None)}
    types = {e.type for e in entries if getattr(e, "type", None)}
    return {"clients": sorted(clients), "types": sorted(types)}


# ─────────────────────────────────────────────────────────────────────────────
# 📈 Chart helpers
# ─────────────────────────────────────────────────────────────────────────────
def densify(buckets, date_from, date_to, group_by, fields):
    """Fill every period between the bounds, using zeros where no bucket exists."""
    if parse_date(date_from) is None or parse_date(date_to) is None:
        return [dict(b) for b in buckets]
    by_key = {b["period"]: b for b in buckets}
    series = []
    for anchor in iter_periods(date_from, date_to, group_by):
        key = period_key(anchor, group_by)
        existing = by_key.get(key, {})
        series.append({"period": key, **{f: existing.get(f, ZERO) for f in fields}})
    return series


def cumulative(series, fields):
    """Running totals of each field along the series."""
    running = {f: ZERO for f in fields}
    result = []
    for item in series:
        row = dict(item)
        for f in fields:
            running[f] += to_decimal(item.get(f))
            row[f] = running[f]
        result.append(row)
    return result


def moving_average(series, field, window):
    """Add `moving_avg` (None until `window` points are available)."""
    if window <= 0:
        return [dict(item) for item in series]
    result = []
    for i, item in enumerate(series):
        row = dict(item)
        if i < window - 1:
            row["moving_avg"] = None
        else:
            chunk = series[i - window + 1:i + 1]
            row["moving_avg"] = sum((to_decimal(x.get(field)) for x in chunk), ZERO) / window
        result.append(row)
    return result


# ─────────────────────────────────────────────────────────────────────────────
# 🎯 Target pacing
# ─────────────────────────────────────────────────────────────────────────────
def elapsed_ratio(period, period_start, today):
    """Share of the period's days that have passed, counting today (0..1)."""
    start, end = period_bounds(period, period_start)
    if today < start:
        return 0.0
    if today > end:
        return 1.0
    return ((today - start).days + 1) / ((end - start).days + 1)


def pace_status(current, expected):
    if current >= ON_PACE_RATIO * expected:
        return "on-pace"
    if current >= AT_RISK_RATIO * expected:
        return "at-risk"
    return "behind"


def pacing(target_value, current_value, period_start, period="year", today=None):
    """
    Compare progress against a target for the year/quarter/month that
    contains `period_start`, as seen on `today` (defaults to the local date).
    """
    target = float(to_decimal(target_value))
    current = float(to_decimal(current_value))
    today = parse_date(today) or timezone.localdate()
    start, end = period_bounds(period, parse_date(period_start) or today)

    ratio = elapsed_ratio(period, start, today)
    total_periods = total_sub_periods(period, start)
    expected = target * ratio
    periods_elapsed = ratio * total_periods
    remaining = max(target - current, 0.0)
    remaining_days = (1 - ratio) * total_periods * APPROX_DAYS_PER_PERIOD

    return {
        "period": period,
        "period_start": start,
        "period_end": end,
        "is_current": start <= today <= end,
        "current_value": current,
        "target_value": target,
        "percentage": current / target * 100 if target > 0 else 0.0,
        "elapsed_ratio": ratio,
        "expected_progress": expected,
        "variance": current - expected,
        "status": pace_status(current, expected),
        "projected": current / periods_elapsed * total_periods if periods_elapsed > 0 else 0.0,
        "remaining": remaining,
        "remaining_days": remaining_days,
        "daily_pace_needed": remaining / max(1.0, remaining_days),
    }


def target_analytics(target_value, entries, year, metric="revenue", today=None,
                     cumulative_mode=False, notes=""):
    """
    Everything the annual target dashboard shows: pacing for the year plus
    monthly and quarterly breakdowns against an even split of the target.
    """
    today = parse_date(today) or timezone.localdate()
    target = float(to_decimal(target_value))
    year_start, year_end = date(year, 1, 1), date(year, 12, 31)

    to_date = filter_entries(entries, year_start, min(year_end, today))
    current = float(totals(to_date, (metric,))[metric])
    pace = pacing(target, current, year_start, "year", today)

    by_month = {
        int(b["period"][5:7]): float(b[metric])
        for b in group_by_period(filter_entries(entries, year_start, year_end), "month", (metric,))
    }

    monthly_target = target / 12
    months, running = [], 0.0
    for m in range(1, 13):
        actual = by_month.get(m, 0.0)
        running += actual
        is_future = date(year, m, 1) > today
        shown = running if cumulative_mode else actual
        goal = monthly_target * m if cumulative_mode else monthly_target
        months.append({
            "month": f"{year}-{m:02d}",
            "month_name": calendar.month_abbr[m],
            "actual": shown,
            "target": goal,
            "is_future": is_future,
            "is_current": year == today.year and m == today.month,
            "is_achieved": not is_future and shown >= goal,
        })

    quarter_target = target / 4
    quarters = []
    for q in range(1, 5):
        q_start = date(year, 3 * (q - 1) + 1, 1)
        actual = sum(by_month.get(m, 0.0) for m in range(3 * (q - 1) + 1, 3 * q + 1))
        quarters.append({
            "quarter": f"Q{q}",
            "actual": actual,
            "target": quarter_target,
            "progress_percent": actual / quarter_target * 100 if quarter_target > 0 else 0.0,
            "variance": actual - quarter_target * elapsed_ratio("quarter", q_start, today),
            "is_future": q_start > today,
        })

    if today < year_start:
        remaining_months, days_remaining = 12, (year_end - year_start).days + 1
    elif today > year_end:
        remaining_months, days_remaining = 0, 0
    else:
        remaining_months, days_remaining = 12 - today.month + 1, (year_end - today).days

    elapsed_months = sum(1 for m in months if not m["is_future"])
    best = max(((m, v) for m, v in by_month.items() if v > 0), key=lambda mv: mv[1], default=None)

    return {
        "year": year,
        "notes": notes,
        "metric": metric,
        "target": target,
        "total": current,
        "progress_percent": pace["percentage"],
        "remaining_target": pace["remaining"],
        "is_current_year": pace["is_current"],
        "is_on_pace": pace["status"] == "on-pace",
        "pacing": pace,
        "expected": pace["expected_progress"],
        "pace_variance": pace["variance"],
        "remaining_months": remaining_months,
        "days_remaining": days_remaining,
        "original_monthly_target": monthly_target,
        "required_monthly_average": pace["remaining"] / max(1, remaining_months),
        "weekly_required": pace["remaining"] / max(1.0, days_remaining / 7),
        "projected_year_end": pace["projected"],
        "projected_vs_target": pace["projected"] - target,
        "will_meet_target": pace["projected"] >= target,
        "monthly_average_actual": current / max(1, elapsed_months),
        "best_month": (
            {"month": calendar.month_name[best[0]], "value": best[1]} if best else None
        ),
        "monthly_breakdown": months,
        "quarterly_breakdown": quarters,
    }
