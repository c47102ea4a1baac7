"""
Command line access to the named reports.

    analytics-report most_visited_pages --days 30 -v 12345678 -c service-account.json
    analytics-report query 2024-01-01 2024-01-31 -m users,sessions -d country
"""
import argparse
import logging
import sys

import pandas as pd

from .analytics import Analytics
from .cache_utils import ReportCache
from .client import AnalyticsClient
from .config import AnalyticsSettings, configure_logging
from .exceptions import AnalyticsError
from .google_service import (
    build_reporting_service,
    create_client_for_config,
    load_user_credentials,
)
from .period import Period
from .query_models import split_names

logger = logging.getLogger(__name__)

NAMED_PERIODS = {
    'today': Period.today,
    'yesterday': Period.yesterday,
    'this_week': Period.this_week,
    'this_month': Period.this_month,
    'this_year': Period.this_year,
    'year_to_date': Period.year_to_date,
    'until_today': Period.until_today,
    'until_yesterday': Period.until_yesterday,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fetch a named Google Analytics report, or a custom query, for one view.")
    parser.add_argument("report", nargs='?', help="Report name, or 'query' for a custom metrics/dimensions query")
    parser.add_argument("start_date", nargs='?', help="Start date (yyyy-mm-dd)", default=None)
    parser.add_argument("end_date", nargs='?', help="End date (yyyy-mm-dd)", default=None)
    parser.add_argument("--days", type=int, help="Report on the last N days instead of explicit dates", default=None)
    parser.add_argument("--months", type=int, help="Report on the last N months instead of explicit dates", default=None)
    parser.add_argument("--period", choices=sorted(NAMED_PERIODS), help="Named period instead of explicit dates", default=None)
    parser.add_argument("-v", "--view_id", help="Google Analytics view ID (default: ANALYTICS_VIEW_ID)", default=None)
    parser.add_argument("-c", "--credentials", help="Service account credentials JSON (default: ANALYTICS_CREDENTIALS_JSON)", default=None)
    parser.add_argument("--token_file", help="Authorized-user token file, used instead of a service account", default=None)
    parser.add_argument("--client_secrets", help="OAuth client secrets file used to create the token file", default=None)
    parser.add_argument("-m", "--metrics", help="Comma-separated metrics for 'query' (e.g. 'users,pageviews')", default=None)
    parser.add_argument("-d", "--dimensions", help="Comma-separated dimensions for 'query' (e.g. 'date,country')", default='')
    parser.add_argument("-s", "--sort", help="Sort field for 'query', descending by value", default=None)
    parser.add_argument("-n", "--max_results", type=int, help="Limit results to n rows", default=None)
    parser.add_argument("--cache_minutes", type=int, help="Cache lifetime in minutes, 0 to always fetch", default=None)
    parser.add_argument("-o", "--output", help="Write the result to this CSV file instead of printing it", default=None)
    parser.add_argument("-l", "--list_reports", action="store_true", help="List the available named reports")
    parser.add_argument("--debug", action="store_true", help="Enable debug output to show verbose messages.")
    return parser


def resolve_period(args) -> Period:
    if args.period:
        return NAMED_PERIODS[args.period]()
    if args.days is not None:
        return Period.last_days(args.days)
    if args.months is not None:
        return Period.last_months(args.months)
    if args.start_date and args.end_date:
        return Period.create(args.start_date, args.end_date)
    return Period.last_days(7)


def build_analytics(args, settings: AnalyticsSettings) -> Analytics:
    if args.token_file:
        credentials = load_user_credentials(args.token_file, args.client_secrets)
        cache = ReportCache.on_disk(settings.cache_dir, settings.cache_size_limit, prefix=f"user-{args.token_file}.")
        client = AnalyticsClient(build_reporting_service(credentials), cache, settings.cache_lifetime_in_minutes)
    else:
        client = create_client_for_config(settings)
    return Analytics(client, settings.view_id)


def to_dataframe(report: str, result) -> pd.DataFrame:
    if report == 'traffic_by_day_hour':
        rows = [dict(weekday=weekday, **hour) for weekday, hours in result.items() for hour in hours]
        return pd.DataFrame(rows, columns=['weekday', 'hour', 'visitors'])
    return pd.DataFrame(result)


def run(args) -> pd.DataFrame:
    settings = AnalyticsSettings.from_env(
        view_id=args.view_id,
        service_account_credentials_json=args.credentials,
        cache_lifetime_in_minutes=args.cache_minutes,
    )
    if not settings.view_id:
        raise AnalyticsError("No view ID given. Use -v or set ANALYTICS_VIEW_ID.")

    analytics = build_analytics(args, settings)
    period = resolve_period(args)
    logger.info(f"Running {args.report} for view {settings.view_id}, {period}")

    if args.report == 'query':
        metrics = split_names(args.metrics)
        dimensions = split_names(args.dimensions)
        rows = analytics.perform_query(period, metrics, dimensions, args.sort, args.max_results)
        return pd.DataFrame(rows, columns=dimensions + metrics)

    return to_dataframe(args.report, analytics.run(args.report, period, args.max_results))


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.debug or None)

    if args.list_reports:
        print("\nAvailable reports:")
        for name, description in Analytics.available_reports().items():
            print(f"  {name:32} {description}")
        return 0

    if not args.report:
        parser.error("a report name is required (or use --list_reports)")

    try:
        df = run(args)
    except AnalyticsError as e:
        logger.error(f"Report failed: {e}")
        return 1

    if df.empty:
        print("No data returned for this period.")
    elif args.output:
        df.to_csv(args.output, index=False)
        print(f"Wrote {len(df)} rows to {args.output}")
    else:
        print(df.to_string(index=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
