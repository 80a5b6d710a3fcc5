"""Reporting module -- niche performance data, HTML tables, CSV export and report files."""

from sitegenie.modules.reporting.niche_performance import (
    PerformanceFilters,
    compare_niches,
    export_niche_data_to_csv,
    generate_niche_comparison_report,
    generate_report,
    get_niche_performance_data,
    render_niche_performance_table,
)

__all__ = [
    "PerformanceFilters",
    "get_niche_performance_data",
    "render_niche_performance_table",
    "export_niche_data_to_csv",
    "generate_report",
    "compare_niches",
    "generate_niche_comparison_report",
]
