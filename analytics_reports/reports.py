"""
Named report recipes.

Each entry in ``REPORTS`` declares the metrics, dimensions and sort field of a
report plus the function that turns one flattened row into a record.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .exceptions import UnknownReportError

Record = Dict[str, Any]

OTHERS_LABEL = "Others"
DEFAULT_TOP_BROWSERS = 10

# English names regardless of the process locale
WEEKDAY_NAMES = ('Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday')
MONTH_ABBREVIATIONS = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
                       'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')


def format_long_date(value: str) -> str:
    """20240101 -> 'Mon, Jan 1, 2024'"""
    day = datetime.strptime(value, '%Y%m%d')
    return f"{WEEKDAY_NAMES[day.weekday()][:3]}, {MONTH_ABBREVIATIONS[day.month - 1]} {day.day}, {day.year}"


def format_short_date(value: str) -> str:
    """20240101 -> '1 Jan'"""
    day = datetime.strptime(value, '%Y%m%d')
    return f"{day.day} {MONTH_ABBREVIATIONS[day.month - 1]}"


def to_int(value: str) -> int:
    # integer metrics can come back as '12.0' when sampled
    try:
        return int(value)
    except ValueError:
        return int(float(value))


@dataclass(frozen=True)
class ReportSpec:
    name: str
    metrics: Tuple[str, ...]
    dimensions: Tuple[str, ...]
    sort_by_field: Optional[str]
    map_row: Callable[[Sequence[str]], Record]
    uses_max_results: bool = True
    description: str = ""

    def present(self, rows: Sequence[Sequence[str]]) -> List[Record]:
        return [self.map_row(row) for row in rows]


def _visitors_and_page_views(row):
    return {
        'date': format_long_date(row[0]),
        'pageTitle': row[1],
        'visitors': to_int(row[2]),
        'pageViews': to_int(row[3]),
    }


def _total_visitors_and_page_views(row):
    return {
        'date': format_long_date(row[0]),
        'visitors': to_int(row[1]),
        'pageViews': to_int(row[2]),
    }


def _most_visited_pages(row):
    return {'url': row[0], 'pageTitle': row[1], 'pageViews': to_int(row[2])}


def _top_referrers(row):
    return {'url': row[0], 'pageViews': to_int(row[1])}


def _top_browsers(row):
    return {'browser': row[0], 'sessions': to_int(row[1])}


def _demographics(row):
    return {'userAgeBracket': row[0], 'userGender': row[1], 'visitors': to_int(row[2])}


def _geo(row):
    return {'language': row[0], 'city': row[1], 'country': row[2], 'visitors': to_int(row[3])}


def _languages(row):
    return {'language': row[0], 'visitors': to_int(row[1])}


def _cities(row):
    return {'city': f"{row[0]}, {row[1]}", 'visitors': to_int(row[2])}


def _countries(row):
    return {'country': row[0], 'visitors': to_int(row[1])}


def _traffic_summary(row):
    return {
        'date': format_short_date(row[0]),
        'visitors': to_int(row[1]),
        'pageViews': to_int(row[2]),
        'sessions': to_int(row[3]),
        'bounceRate': float(row[4]),
    }


def _day_hour(row):
    moment = datetime.strptime(row[0], '%Y%m%d%H')
    return {'weekday': WEEKDAY_NAMES[moment.weekday()], 'hour': f"{moment.hour:02d}", 'visitors': to_int(row[1])}


REPORTS: Dict[str, ReportSpec] = {spec.name: spec for spec in [
    ReportSpec('visitors_and_page_views', ('users', 'pageviews'), ('date', 'pageTitle'), 'pageviews',
               _visitors_and_page_views, description="Visitors and page views per day and page title"),
    ReportSpec('total_visitors_and_page_views', ('users', 'pageviews'), ('date',), 'pageviews',
               _total_visitors_and_page_views, description="Visitors and page views per day"),
    ReportSpec('most_visited_pages', ('pageviews',), ('pagePath', 'pageTitle'), 'pageviews',
               _most_visited_pages, description="Pages with the most page views"),
    ReportSpec('top_referrers', ('pageviews',), ('fullReferrer',), 'pageviews',
               _top_referrers, description="Referrers sending the most page views"),
    # every browser is fetched; the limit is applied by summarize_top_browsers
    ReportSpec('top_browsers', ('sessions',), ('browser',), 'sessions',
               _top_browsers, uses_max_results=False, description="Browsers by sessions, the tail grouped as Others"),
    ReportSpec('demographics', ('users',), ('userAgeBracket', 'userGender'), None,
               _demographics, description="Visitors by age bracket and gender"),
    ReportSpec('geo', ('users',), ('language', 'city', 'country'), 'users',
               _geo, description="Visitors by language, city and country"),
    ReportSpec('languages', ('users',), ('language',), 'users',
               _languages, description="Visitors by language"),
    ReportSpec('cities', ('users',), ('city', 'country'), 'users',
               _cities, description="Visitors by city"),
    ReportSpec('countries', ('users',), ('country',), 'users',
               _countries, description="Visitors by country"),
    ReportSpec('traffic_summary', ('users', 'pageviews', 'sessions', 'bounceRate'), ('date',), None,
               _traffic_summary, uses_max_results=False, description="Daily visitors, page views, sessions and bounce rate"),
    ReportSpec('traffic_by_day_hour', ('users',), ('dateHour',), None,
               _day_hour, uses_max_results=False, description="Hourly visitors grouped by weekday"),
]}


def get_report_spec(name: str) -> ReportSpec:
    try:
        return REPORTS[name]
    except KeyError:
        raise UnknownReportError(f"Unknown report '{name}'. Available reports: {', '.join(sorted(REPORTS))}")


def summarize_top_browsers(records: List[Record], max_results: int = DEFAULT_TOP_BROWSERS) -> List[Record]:
    """
    Keep the first ``max_results - 1`` browsers and fold the rest into a single
    'Others' record. Records must already be sorted by sessions, descending.
    """
    if len(records) <= max_results:
        return records

    top = records[:max_results - 1]
    others = sum(record['sessions'] for record in records[max_results - 1:])
    return top + [{'browser': OTHERS_LABEL, 'sessions': others}]


def group_by_weekday(records: List[Record]) -> Dict[str, List[Record]]:
    """Bucket hourly records by weekday name, keeping the order rows arrived in"""
    result: Dict[str, List[Record]] = {}
    for record in records:
        result.setdefault(record['weekday'], []).append(
            {'hour': record['hour'], 'visitors': record['visitors']}
        )
    return result
