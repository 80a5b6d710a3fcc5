"""Niche performance reporting -- stored niche metrics as data, HTML, CSV and report files."""

import csv
import html
import io
import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from sqlalchemy.exc import SQLAlchemyError

from sitegenie.database import NicheStore
from sitegenie.exceptions import InputError, SiteGenieError
from sitegenie.utils.helpers import round2

logger = logging.getLogger(__name__)

DEFAULT_CSV_COLUMNS = (
    "name",
    "monthly_search_volume",
    "competition_score",
    "monetization_potential",
    "trending_score",
    "estimated_cpc",
    "recommendation_score",
    "site_count",
)

CSV_HEADERS = {
    "name": "Niche",
    "monthly_search_volume": "Monthly Searches",
    "competition_score": "Competition Score",
    "monetization_potential": "Monetization Potential",
    "trending_score": "Trending Score",
    "estimated_cpc": "Estimated CPC ($)",
    "recommendation_score": "Recommendation Score",
    "site_count": "Number of Sites",
    "related_keywords": "Related Keywords",
    "created_at": "Created At",
    "last_updated": "Last Updated",
}

_SCORE_OUT_OF_TEN = ("monetization_potential", "trending_score", "recommendation_score")


@dataclass
class PerformanceFilters:
    """Filter, sort and paging options for ``get_niche_performance_data``.

    Attributes:
        industry: Case-insensitive substring of the niche name or a keyword.
        investment_level: low (<30), medium (30-60) or high (>60) competition.
            Unknown levels do not filter.
        min_search_volume: Minimum monthly searches.
        max_competition: Maximum competition score (0-100).
        sort_by: One of the sortable niche columns.
        sort_order: ASC or DESC.
        limit: Page size.
        offset: Rows skipped.
    """
    industry: Optional[str] = None
    investment_level: Optional[str] = None
    min_search_volume: int = 0
    max_competition: float = 100
    sort_by: str = "monetization_potential"
    sort_order: str = "DESC"
    limit: int = 50
    offset: int = 0

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "PerformanceFilters":
        data = data or {}

        def pick(snake: str, camel: str, default: Any) -> Any:
            value = data.get(snake, data.get(camel))
            return default if value is None else value

        return cls(
            industry=data.get("industry") or None,
            investment_level=pick("investment_level", "investmentLevel", None),
            min_search_volume=int(pick("min_search_volume", "minSearchVolume", 0)),
            max_competition=float(pick("max_competition", "maxCompetition", 100)),
            sort_by=pick("sort_by", "sortBy", "monetization_potential"),
            sort_order=pick("sort_order", "sortOrder", "DESC"),
            limit=int(pick("limit", "limit", 50)),
            offset=int(pick("offset", "offset", 0)),
        )


def recommendation_score(row: dict[str, Any]) -> float:
    """Weighted 0-10 score: competition (rescaled to 0-10), monetization, trend."""
    return round2(
        (10 - row["competition_score"] / 10) * 0.4
        + row["monetization_potential"] * 0.4
        + row["trending_score"] * 0.2
    )


def _iso(value: Any) -> Optional[str]:
    return value.isoformat() if value is not None else None


def get_niche_performance_data(
    store: NicheStore,
    filters: Optional[PerformanceFilters] = None,
) -> dict[str, Any]:
    """Query stored niches and format them for display.

    Returns:
        ``{"success": True, "data": [...], "pagination": {...}, "filters": {...}}``
        or ``{"success": False, "error": ...}`` when the query fails.
    """
    filters = filters or PerformanceFilters()
    try:
        if filters.limit < 1 or filters.offset < 0:
            raise InputError("limit must be positive and offset non-negative")
        rows, total = store.query_niches(
            min_search_volume=filters.min_search_volume,
            max_competition=filters.max_competition,
            industry=filters.industry,
            investment_level=filters.investment_level,
            sort_by=filters.sort_by,
            sort_order=filters.sort_order,
            limit=filters.limit,
            offset=filters.offset,
        )
    except (SQLAlchemyError, SiteGenieError) as exc:
        logger.error("Error retrieving niche performance data: %s", exc)
        return {"success": False, "error": str(exc)}

    data = []
    for row in rows:
        data.append({
            "id": row["id"],
            "name": row["name"],
            "monthly_search_volume": int(row["monthly_search_volume"]),
            "competition_score": round2(row["competition_score"]),
            "monetization_potential": round2(row["monetization_potential"]),
            "trending_score": round2(row["trending_score"]),
            "estimated_cpc": round2(row["estimated_cpc"]),
            "created_at": _iso(row["created_at"]),
            "last_updated": _iso(row["last_updated"]),
            "site_count": row["site_count"],
            "related_keywords": row["related_keywords"],
            "recommendation_score": recommendation_score(row),
        })

    return {
        "success": True,
        "data": data,
        "pagination": {
            "total": total,
            "page": filters.offset // filters.limit + 1,
            "page_size": filters.limit,
            "total_pages": math.ceil(total / filters.limit),
        },
        "filters": {
            "industry": filters.industry,
            "investment_level": filters.investment_level,
            "min_search_volume": filters.min_search_volume,
            "max_competition": filters.max_competition,
        },
    }


# ----------------------------------------------------------------------
# HTML
# ----------------------------------------------------------------------

def _competition_class(score: float) -> str:
    if score < 30:
        return "low-competition"
    if score < 60:
        return "medium-competition"
    return "high-competition"


def _score_class(score: float) -> str:
    if score < 4:
        return "low-score"
    if score < 7:
        return "medium-score"
    return "high-score"


def _pagination_html(pagination: dict[str, Any]) -> list[str]:
    total = pagination["total"]
    page = pagination["page"]
    page_size = pagination["page_size"]
    total_pages = pagination["total_pages"]

    first = page_size * (page - 1) + 1
    last = min(page_size * page, total)
    parts = ['<div class="pagination">']
    parts.append(f"<span>Showing {first} to {last} of {total} niches</span>")
    parts.append('<div class="pagination-controls">')
    if page > 1:
        parts.append(f'<a href="?page={page - 1}" class="pagination-link">Previous</a>')
    else:
        parts.append('<span class="pagination-link disabled">Previous</span>')
    for i in range(max(1, page - 2), min(total_pages, page + 2) + 1):
        if i == page:
            parts.append(f'<span class="pagination-link current">{i}</span>')
        else:
            parts.append(f'<a href="?page={i}" class="pagination-link">{i}</a>')
    if page < total_pages:
        parts.append(f'<a href="?page={page + 1}" class="pagination-link">Next</a>')
    else:
        parts.append('<span class="pagination-link disabled">Next</span>')
    parts.append("</div>")
    parts.append("</div>")
    return parts


def render_niche_performance_table(
    niche_data: list[dict[str, Any]],
    include_recommendation_score: bool = True,
    include_related_keywords: bool = False,
    include_pagination: bool = True,
    pagination: Optional[dict[str, Any]] = None,
    table_class: str = "niche-performance-table",
) -> str:
    """Render niche rows as an HTML table, with optional pagination controls."""
    if not niche_data:
        return "<p>No niche performance data available.</p>"

    columns = [
        ("name", "Niche"),
        ("monthly_search_volume", "Monthly Searches"),
        ("competition_score", "Competition"),
        ("monetization_potential", "Monetization"),
        ("trending_score", "Trending"),
        ("estimated_cpc", "Est. CPC ($)"),
    ]
    if include_recommendation_score:
        columns.append(("recommendation_score", "Recommendation"))
    if "site_count" in niche_data[0]:
        columns.append(("site_count", "Sites"))
    if include_related_keywords:
        columns.append(("related_keywords", "Related Keywords"))

    parts = [f'<table class="{html.escape(table_class)}">', "<thead>", "<tr>"]
    parts.extend(f"<th>{html.escape(label)}</th>" for _, label in columns)
    parts.extend(["</tr>", "</thead>", "<tbody>"])

    for niche in niche_data:
        parts.append("<tr>")
        for key, _ in columns:
            value = niche.get(key)
            if key == "recommendation_score" and value is None:
                value = recommendation_score(niche)
            if key == "competition_score":
                parts.append(f'<td class="{_competition_class(value)}">{value}</td>')
            elif key in _SCORE_OUT_OF_TEN:
                parts.append(f'<td class="{_score_class(value)}">{value}/10</td>')
            elif key == "related_keywords":
                keywords = value if isinstance(value, list) else []
                parts.append(f"<td>{html.escape(', '.join(keywords[:3]))}</td>")
            else:
                parts.append(f"<td>{html.escape(str(value))}</td>")
        parts.append("</tr>")
    parts.append("</tbody>")
    parts.append("</table>")

    if include_pagination and pagination:
        parts.extend(_pagination_html(pagination))
    return "\n".join(parts)


# ----------------------------------------------------------------------
# CSV
# ----------------------------------------------------------------------

def export_niche_data_to_csv(
    niche_data: list[dict[str, Any]],
    columns: Optional[list[str]] = None,
    include_header: bool = True,
) -> str:
    """Export niche rows as CSV text.

    Requested columns missing from the data are skipped, except
    ``recommendation_score`` which is computed when absent.
    """
    if not niche_data:
        return ""

    first = niche_data[0]
    columns = [
        col for col in (columns or DEFAULT_CSV_COLUMNS)
        if col in first or (col == "recommendation_score" and "monetization_potential" in first)
    ]

    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    if include_header:
        writer.writerow([CSV_HEADERS.get(col, col) for col in columns])
    for niche in niche_data:
        row = []
        for col in columns:
            value = niche.get(col)
            if col == "recommendation_score" and value is None:
                value = recommendation_score(niche)
            if col == "related_keywords" and isinstance(value, list):
                value = ", ".join(value)
            row.append("" if value is None else value)
        writer.writerow(row)
    return output.getvalue()


# ----------------------------------------------------------------------
# Report files
# ----------------------------------------------------------------------

COMPARISON_METRICS = (
    ("Monthly Searches", "monthly_search_volume"),
    ("Competition Score", "competition_score"),
    ("Monetization Potential", "monetization_potential"),
    ("Trending Score", "trending_score"),
    ("Estimated CPC ($)", "estimated_cpc"),
)


def _write_report(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def generate_report(
    store: NicheStore,
    output_dir: Union[str, Path] = "reports",
    filename: Optional[str] = None,
    filters: Optional[PerformanceFilters] = None,
    columns: Optional[list[str]] = None,
    include_header: bool = True,
) -> dict[str, Any]:
    """Write the niche performance CSV to ``output_dir/filename``.

    The default filename is ``niche-performance-YYYY-MM-DD.csv``.

    Returns:
        ``{"success": True, "report_path", "record_count", "generated_at"}``,
        or ``{"success": False, "error", "report_path"}`` when the data
        cannot be read, no niche matches or the file cannot be written.
    """
    path = Path(output_dir) / (filename or f"niche-performance-{date.today().isoformat()}.csv")
    performance = get_niche_performance_data(store, filters)
    if not performance["success"]:
        return {
            "success": False,
            "error": f"Failed to retrieve niche data: {performance['error']}",
            "report_path": str(path),
        }
    if not performance["data"]:
        logger.warning("No niche performance data available for the report")
        return {"success": False, "error": "No data available", "report_path": str(path)}

    try:
        _write_report(path, export_niche_data_to_csv(performance["data"], columns, include_header))
    except OSError as exc:
        logger.error("Report generation failed: %s", exc)
        return {"success": False, "error": str(exc), "report_path": str(path)}

    logger.info("Report generated successfully at %s", path)
    return {
        "success": True,
        "report_path": str(path),
        "record_count": len(performance["data"]),
        "generated_at": datetime.now(timezone.utc).isoformat(),
    }


def compare_niches(first: dict[str, Any], second: dict[str, Any]) -> list[list[Any]]:
    """Metric rows ``[metric, first, second, difference]`` for two stored niches.

    Differences are ``first - second``; score differences carry two decimals.
    """
    rows: list[list[Any]] = [["Niche Name", first["name"], second["name"], ""]]
    for label, key in COMPARISON_METRICS:
        a, b = first[key], second[key]
        if key == "monthly_search_volume":
            rows.append([label, int(a), int(b), int(a) - int(b)])
        else:
            rows.append([label, round2(a), round2(b), f"{a - b:.2f}"])
    rows.append([
        "Recommendation Score",
        recommendation_score(first),
        recommendation_score(second),
        f"{recommendation_score(first) - recommendation_score(second):.2f}",
    ])
    rows.append([
        "Site Count",
        first["site_count"],
        second["site_count"],
        first["site_count"] - second["site_count"],
    ])
    return rows


def generate_niche_comparison_report(
    store: NicheStore,
    niche1_id: int,
    niche2_id: int,
    output_dir: Union[str, Path] = "reports",
    filename: Optional[str] = None,
) -> dict[str, Any]:
    """Write a side-by-side CSV comparison of two stored niches.

    The default filename is ``niche-comparison-YYYY-MM-DD.csv``.  The
    header is ``Metric, <niche 1 name>, <niche 2 name>, Difference``.
    """
    path = Path(output_dir) / (filename or f"niche-comparison-{date.today().isoformat()}.csv")
    try:
        first = store.get_niche(niche1_id)
        second = store.get_niche(niche2_id)
    except (SQLAlchemyError, SiteGenieError) as exc:
        logger.error("Failed to generate niche comparison report: %s", exc)
        return {"success": False, "error": str(exc), "report_path": str(path)}
    if first is None or second is None:
        return {
            "success": False,
            "error": "Could not retrieve data for both niches",
            "report_path": str(path),
        }

    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(["Metric", first["name"], second["name"], "Difference"])
    writer.writerows(compare_niches(first, second))
    try:
        _write_report(path, output.getvalue())
    except OSError as exc:
        logger.error("Failed to generate niche comparison report: %s", exc)
        return {"success": False, "error": str(exc), "report_path": str(path)}

    logger.info("Comparison of %r and %r written to %s", first["name"], second["name"], path)
    return {
        "success": True,
        "report_path": str(path),
        "niche1": {"id": first["id"], "name": first["name"]},
        "niche2": {"id": second["id"], "name": second["name"]},
        "generated_at": datetime.now(timezone.utc).isoformat(),
    }
