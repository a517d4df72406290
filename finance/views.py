# finance/views.py
# ─────────────────────────────────────────────────────────────────────────────
# ✅ All views for the Finance app live here.
#    This file includes:
#      • Helpers (query-string filters, JSON conversion)
#      • Revenue views: entries / KPIs / by period / by client / by type / options
#      • Revenue CSV export
#      • Cost views: entries / KPIs / by period / by VAT section
#      • Target views: list + upsert / detail / delete / analytics / pacing
#    The maths lives in finance/analytics.py; views only load the user's rows.
# ─────────────────────────────────────────────────────────────────────────────

# ===== Standard library imports =============================================
from datetime import date                                  # 🗓️ default dates
from decimal import Decimal                                # 💰 precise currency math
import csv                                                 # 📄 CSV writing for export
from io import StringIO                                    # 🧪 in-memory text buffer for CSV

# ===== Django imports ========================================================
from django.contrib.auth.mixins import LoginRequiredMixin  # 🔒 require login on class-based views
from django.http import HttpResponse, JsonResponse         # 🌐 JSON + CSV downloads
from django.utils import timezone                          # 🕰️ "today" in the configured zone
from django.views import View                              # 🧱 base class for simple custom views

# ===== Local imports =========================================================
from hub.exceptions import InvalidOperation, NotFound
from hub.views import JsonErrorMixin, form_errors_response, request_payload

from . import analytics
from .forms import EntryQueryForm, PacingForm, TargetForm
from .models import CostEntry, RevenueEntry, RevenueTarget


# ─────────────────────────────────────────────────────────────────────────────
# 🔎 Helpers
# ─────────────────────────────────────────────────────────────────────────────
def _jsonable(value):
    """Decimal → float, date → ISO string, recursively (for JsonResponse)."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def _list_param(GET, name):
    """Accept ?client=a&client=b as well as ?client=a,b."""
    values = []
    for raw in GET.getlist(name):
        values.extend(v.strip() for v in raw.split(",") if v.strip())
    return values


class _ApiView(LoginRequiredMixin, JsonErrorMixin, View):
    """Base: login required + service errors rendered as JSON."""


class _EntriesView(_ApiView):
    """
    Loads the user's entries and applies the query-string filters
    (date range + dimension lists, all AND-ed).
    """

    model = None
    dimensions = ()                                   # (query param, model field)

    def get_query(self):
        form = EntryQueryForm(self.request.GET)
        self.query_form = form
        return form.cleaned_data if form.is_valid() else None

    def get_entries(self, query):
        rows = self.model.objects.filter(user=self.request.user)
        filters = {field: _list_param(self.request.GET, param) for param, field in self.dimensions}
        if query.get("billable") is not None and self.model is RevenueEntry:
            filters["billable"] = query["billable"]
        return analytics.filter_entries(rows, query.get("date_from"), query.get("date_to"), **filters)

    def get(self, request):
        query = self.get_query()
        if query is None:
            return form_errors_response(self.query_form)
        return JsonResponse(_jsonable(self.build(query, self.get_entries(query))), safe=False)

    def build(self, query, entries):
        raise NotImplementedError


# ─────────────────────────────────────────────────────────────────────────────
# 💶 REVENUE VIEWS
# ─────────────────────────────────────────────────────────────────────────────
class _RevenueView(_EntriesView):
    model = RevenueEntry
    dimensions = (("client", "client"), ("type", "type"), ("status", "simplicate_status"))


def _revenue_row(e):
    return {
        "id": e.pk,
        "notion_page_id": e.notion_page_id,
        "description": e.description,
        "client": e.client,
        "type": e.type,
        "billable": e.billable,
        "start_time": e.start_time.isoformat() if e.start_time else None,
        "end_time": e.end_time.isoformat() if e.end_time else None,
        "hours": e.hours,
        "kilometers": e.kilometers,
        "rate": e.rate,
        "revenue": e.revenue,
        "net_income": e.net_income,
        "simplicate_id": e.simplicate_id,
        "simplicate_status": e.simplicate_status,
    }


class RevenueEntryListView(_RevenueView):
    """Entries, newest first, optionally capped by ?limit=."""

    def build(self, query, entries):
        limit = query.get("limit")
        rows = entries[:limit] if limit else entries
        return {"entries": [_revenue_row(e) for e in rows]}


class RevenueKpiView(_RevenueView):
    """KPI cards for the filtered set (undated entries count too)."""

    def build(self, query, entries):
        return analytics.revenue_kpis(entries)


class RevenueByPeriodView(_RevenueView):
    """
    Buckets per week/month/quarter/year.
    With both dates given the series is densified (zeros for empty periods);
    ?cumulative=1 turns it into running totals, ?moving_average=N adds a
    moving average of ?metric=.
    """

    def build(self, query, entries):
        group_by = query.get("group_by") or "month"
        fields = analytics.REVENUE_FIELDS
        series = analytics.group_by_period(entries, group_by, fields)
        series = analytics.densify(series, query.get("date_from"), query.get("date_to"), group_by, fields)
        if query.get("cumulative"):
            series = analytics.cumulative(series, fields)
        if query.get("moving_average"):
            series = analytics.moving_average(series, query.get("metric") or "revenue", query["moving_average"])
        return {"group_by": group_by, "periods": series}


class RevenueByClientView(_RevenueView):
    def build(self, query, entries):
        return {"clients": analytics.group_by_dimension(entries, "client", ("revenue", "hours"))}


class RevenueByTypeView(_RevenueView):
    def build(self, query, entries):
        return {"types": analytics.group_by_dimension(entries, "type", ("revenue", "hours"))}


class RevenueFilterOptionsView(_ApiView):
    def get(self, request):
        rows = RevenueEntry.objects.filter(user=request.user).only("client", "type")
        return JsonResponse(analytics.filter_options(rows))


class RevenueCsvExportView(_RevenueView):
    """Return a CSV export of the filtered revenue entries."""

    def get(self, request):
        query = self.get_query()
        if query is None:
            return form_errors_response(self.query_form)
        entries = sorted(
            self.get_entries(query),
            key=lambda e: (analytics.entry_date(e) or date.min, e.pk),
        )

        # 🧪 write CSV into memory
        buffer = StringIO()
        writer = csv.writer(buffer)
        writer.writerow(["Date", "Client", "Type", "Description", "Hours", "Revenue", "Net income"])
        for e in entries:
            d = analytics.entry_date(e)
            writer.writerow([
                d.strftime("%Y-%m-%d") if d else "",
                e.client or "",
                e.type or "",
                (e.description or "").replace("\n", " ").strip(),
                f"{analytics.to_decimal(e.hours):.2f}",
                f"{analytics.to_decimal(e.revenue):.2f}",
                f"{analytics.to_decimal(e.net_income):.2f}",
            ])

        # 📦 build HTTP response for download
        date_from = query.get("date_from")
        date_to = query.get("date_to")
        suffix = f"_{date_from:%Y%m%d}_{date_to:%Y%m%d}" if date_from and date_to else ""
        response = HttpResponse(buffer.getvalue(), content_type="text/csv")
        response["Content-Disposition"] = f'attachment; filename="revenue_export{suffix}.csv"'
        return response


# ─────────────────────────────────────────────────────────────────────────────
# 🧾 COST VIEWS
# ─────────────────────────────────────────────────────────────────────────────
class _CostView(_EntriesView):
    model = CostEntry
    dimensions = (("vat_section", "vat_section"),)

    def get_entries(self, query):
        years = _list_param(self.request.GET, "year")
        if any(not y.isdigit() for y in years):
            raise InvalidOperation("year must be a number", years=years)
        entries = super().get_entries(query)
        if years:
            entries = analytics.filter_entries(entries, year=[int(y) for y in years])
        return entries


class CostEntryListView(_CostView):
    def build(self, query, entries):
        limit = query.get("limit")
        rows = entries[:limit] if limit else entries
        return {"entries": [
            {
                "id": e.pk,
                "name": e.name,
                "invoice_date": e.invoice_date,
                "amount_excl_vat": e.amount_excl_vat,
                "vat": e.vat,
                "vat_section": e.vat_section,
                "description": e.description,
            }
            for e in rows
        ]}


class CostKpiView(_CostView):
    def build(self, query, entries):
        return analytics.cost_kpis(entries)


class CostByPeriodView(_CostView):
    def build(self, query, entries):
        group_by = query.get("group_by") or "month"
        series = analytics.group_by_period(entries, group_by, analytics.COST_FIELDS)
        series = analytics.densify(series, query.get("date_from"), query.get("date_to"),
                                   group_by, analytics.COST_FIELDS)
        if query.get("cumulative"):
            series = analytics.cumulative(series, analytics.COST_FIELDS)
        return {"group_by": group_by, "periods": series}


class CostBySectionView(_CostView):
    def build(self, query, entries):
        return {"sections": analytics.group_by_dimension(entries, "vat_section", analytics.COST_FIELDS)}


# ─────────────────────────────────────────────────────────────────────────────
# 🎯 TARGET VIEWS
# ─────────────────────────────────────────────────────────────────────────────
def _target_dict(t):
    return {"year": t.year, "target_value": float(t.target_value), "notes": t.notes}


def _get_target(user, year):
    target = RevenueTarget.objects.filter(user=user, year=year).first()
    if target is None:
        raise NotFound("Target not found", year=year)
    return target


class TargetListView(_ApiView):
    """GET: all targets. POST: create or update the target for a year."""

    def get(self, request):
        return JsonResponse({"targets": [_target_dict(t) for t in RevenueTarget.objects.filter(user=request.user)]})

    def post(self, request):
        form = TargetForm(request_payload(request), user=request.user)
        if not form.is_valid():
            return form_errors_response(form)
        return JsonResponse(_target_dict(form.save()))


class TargetDetailView(_ApiView):
    def get(self, request, year):
        return JsonResponse(_target_dict(_get_target(request.user, year)))


class TargetDeleteView(_ApiView):
    def post(self, request, year):
        _get_target(request.user, year).delete()
        return JsonResponse({"success": True})


class TargetAnalyticsView(_ApiView):
    """Annual target dashboard data; {"analytics": null} when no target is set."""

    def get(self, request, year):
        target = RevenueTarget.objects.filter(user=request.user, year=year).first()
        if target is None:
            return JsonResponse({"analytics": None})
        form = EntryQueryForm(request.GET)
        if not form.is_valid():
            return form_errors_response(form)
        entries = RevenueEntry.objects.filter(user=request.user)
        data = analytics.target_analytics(
            target.target_value,
            entries,
            year,
            metric=form.cleaned_data.get("metric") or "revenue",
            today=timezone.localdate(),
            cumulative_mode=form.cleaned_data.get("cumulative"),
            notes=target.notes,
        )
        return JsonResponse({"analytics": _jsonable(data)})


class PacingView(_ApiView):
    """
    Pacing of ?metric= against ?target= for the ?period= (year|quarter|month)
    containing ?date= (today by default).
    """

    def get(self, request):
        form = PacingForm(request.GET)
        if not form.is_valid():
            return form_errors_response(form)

        today = timezone.localdate()
        period = form.cleaned_data.get("period") or "year"
        anchor = form.cleaned_data.get("date") or today
        start, end = analytics.period_bounds(period, anchor)
        metric = form.cleaned_data.get("metric") or "revenue"

        entries = analytics.filter_entries(
            RevenueEntry.objects.filter(user=request.user), start, min(end, today)
        )
        current = analytics.totals(entries, (metric,))[metric]
        data = analytics.pacing(form.cleaned_data["target"], current, start, period, today)
        return JsonResponse(_jsonable(data))
