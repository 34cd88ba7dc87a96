"""
Analytics Module

Pure aggregation over the job log:
- Monthly revenue and job-count series for charts
- Revenue by job type, job count by lead source
- Recent-window summaries used in AI prompts

All functions take job dicts in wire form (type, value, leadSource, date)
and never touch the database.
"""

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from dateutil import parser as date_parser

MONTH_LABEL_FORMAT = '%b %Y'


def month_label(month_key: str) -> str:
    """'2024-06' -> 'Jun 2024'"""
    return datetime.strptime(month_key, '%Y-%m').strftime(MONTH_LABEL_FORMAT)


def aggregate(jobs: Iterable[Dict]) -> Dict[str, List[Dict]]:
    """
    Aggregate raw jobs into chart series

    Args:
        jobs: Iterable of job dicts

    Returns:
        Dict with revenueSeries, countSeries ({month, value}, chronological)
        and revenueByType, countBySource ({name, value}, sorted by name)
    """
    monthly_revenue = defaultdict(float)
    monthly_count = defaultdict(int)
    revenue_by_type = defaultdict(float)
    count_by_source = defaultdict(int)

    for job in jobs:
        month_key = job['date'][:7]  # YYYY-MM
        monthly_revenue[month_key] += job['value']
        monthly_count[month_key] += 1
        revenue_by_type[job['type']] += job['value']
        count_by_source[job['leadSource']] += 1

    months = sorted(monthly_revenue)

    return {
        'revenueSeries': [
            {'month': month_label(key), 'value': monthly_revenue[key]} for key in months
        ],
        'countSeries': [
            {'month': month_label(key), 'value': monthly_count[key]} for key in months
        ],
        'revenueByType': [
            {'name': name, 'value': revenue_by_type[name]} for name in sorted(revenue_by_type)
        ],
        'countBySource': [
            {'name': name, 'value': count_by_source[name]} for name in sorted(count_by_source)
        ],
    }


def summarize_recent_jobs(jobs: List[Dict], now: Optional[datetime] = None,
                          days: int = 30) -> Optional[Dict]:
    """
    Summarize jobs dated within the last `days` days of `now`.

    Returns None when the job log is empty, otherwise a dict with
    totalJobs, totalRevenue, revenueByType and countBySource (the last two
    keyed by type/source name).
    """
    if not jobs:
        return None

    now = now or datetime.utcnow()
    cutoff = (now - timedelta(days=days)).date()

    revenue_by_type = defaultdict(float)
    count_by_source = defaultdict(int)
    total_jobs = 0
    total_revenue = 0.0

    for job in jobs:
        if date_parser.isoparse(job['date']).date() < cutoff:
            continue
        total_jobs += 1
        total_revenue += job['value']
        revenue_by_type[job['type']] += job['value']
        count_by_source[job['leadSource']] += 1

    return {
        'days': days,
        'totalJobs': total_jobs,
        'totalRevenue': total_revenue,
        'revenueByType': dict(sorted(revenue_by_type.items())),
        'countBySource': dict(sorted(count_by_source.items())),
    }


def format_money(value: float) -> str:
    """Thousands separators, no trailing .00 on whole amounts"""
    if float(value).is_integer():
        return f"${value:,.0f}"
    return f"${value:,.2f}"


def format_job_summary(summary: Optional[Dict]) -> str:
    """Render a recent-jobs summary as a markdown block for prompts"""
    if summary is None:
        return "No job data available."

    days = summary.get('days', 30)
    if summary['totalJobs'] == 0:
        return f"No jobs logged in the last {days} days."

    revenue_lines = '\n'.join(
        f"- {job_type}: {format_money(total)}" for job_type, total in summary['revenueByType'].items()
    )
    source_lines = '\n'.join(
        f"- {source}: {count} jobs" for source, count in summary['countBySource'].items()
    )

    return (
        f"**Recent Job Summary (Last {days} Days):**\n"
        f"Total Jobs: {summary['totalJobs']}\n"
        f"Total Revenue: {format_money(summary['totalRevenue'])}\n"
        f"Revenue by Job Type:\n{revenue_lines}\n"
        f"Jobs by Lead Source:\n{source_lines}"
    )
