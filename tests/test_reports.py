#!/usr/bin/env python3
"""
Tests for the named report recipes and their post-processing.
"""

import locale
import os
import sys
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from analytics_reports.exceptions import UnknownReportError
from analytics_reports.reports import (
    REPORTS,
    format_long_date,
    format_short_date,
    get_report_spec,
    group_by_weekday,
    summarize_top_browsers,
    to_int,
)


class TestFormatting(unittest.TestCase):

    def test_long_date(self):
        self.assertEqual(format_long_date('20240101'), 'Mon, Jan 1, 2024')
        self.assertEqual(format_long_date('20231225'), 'Mon, Dec 25, 2023')

    def test_short_date(self):
        self.assertEqual(format_short_date('20240105'), '5 Jan')

    def test_names_ignore_process_locale(self):
        saved = locale.setlocale(locale.LC_TIME)
        for name in ('de_DE.UTF-8', 'fr_FR.UTF-8', 'es_ES.UTF-8'):
            try:
                locale.setlocale(locale.LC_TIME, name)
                break
            except locale.Error:
                continue
        else:
            self.skipTest("no non-English locale installed")
        self.addCleanup(locale.setlocale, locale.LC_TIME, saved)

        self.assertEqual(format_long_date('20240305'), 'Tue, Mar 5, 2024')
        self.assertEqual(format_short_date('20241201'), '1 Dec')
        self.assertEqual(REPORTS['traffic_by_day_hour'].map_row(['2024010107', '3']),
                         {'weekday': 'Monday', 'hour': '07', 'visitors': 3})

    def test_to_int(self):
        self.assertEqual(to_int('12'), 12)
        self.assertEqual(to_int('12.0'), 12)


class TestReportTable(unittest.TestCase):

    def test_recipes(self):
        expected = {
            'visitors_and_page_views': (('users', 'pageviews'), ('date', 'pageTitle'), 'pageviews'),
            'total_visitors_and_page_views': (('users', 'pageviews'), ('date',), 'pageviews'),
            'most_visited_pages': (('pageviews',), ('pagePath', 'pageTitle'), 'pageviews'),
            'top_referrers': (('pageviews',), ('fullReferrer',), 'pageviews'),
            'top_browsers': (('sessions',), ('browser',), 'sessions'),
            'demographics': (('users',), ('userAgeBracket', 'userGender'), None),
            'geo': (('users',), ('language', 'city', 'country'), 'users'),
            'languages': (('users',), ('language',), 'users'),
            'cities': (('users',), ('city', 'country'), 'users'),
            'countries': (('users',), ('country',), 'users'),
            'traffic_summary': (('users', 'pageviews', 'sessions', 'bounceRate'), ('date',), None),
            'traffic_by_day_hour': (('users',), ('dateHour',), None),
        }
        self.assertEqual(set(REPORTS), set(expected))
        for name, (metrics, dimensions, sort) in expected.items():
            spec = REPORTS[name]
            self.assertEqual((spec.metrics, spec.dimensions, spec.sort_by_field), (metrics, dimensions, sort), name)

    def test_unknown_report(self):
        with self.assertRaises(UnknownReportError):
            get_report_spec('bogus')

    def test_visitors_and_page_views_row(self):
        record = REPORTS['visitors_and_page_views'].map_row(['20240101', 'Home', '5', '17'])
        self.assertEqual(record, {'date': 'Mon, Jan 1, 2024', 'pageTitle': 'Home', 'visitors': 5, 'pageViews': 17})

    def test_most_visited_pages_row(self):
        record = REPORTS['most_visited_pages'].map_row(['/about', 'About', '42'])
        self.assertEqual(record, {'url': '/about', 'pageTitle': 'About', 'pageViews': 42})

    def test_cities_row(self):
        record = REPORTS['cities'].map_row(['Paris', 'France', '8'])
        self.assertEqual(record, {'city': 'Paris, France', 'visitors': 8})

    def test_demographics_visitors_are_ints(self):
        record = REPORTS['demographics'].map_row(['25-34', 'female', '31'])
        self.assertEqual(record, {'userAgeBracket': '25-34', 'userGender': 'female', 'visitors': 31})

    def test_traffic_summary_row(self):
        record = REPORTS['traffic_summary'].map_row(['20240105', '10', '30', '12', '45.5'])
        self.assertEqual(record, {'date': '5 Jan', 'visitors': 10, 'pageViews': 30, 'sessions': 12, 'bounceRate': 45.5})

    def test_present_empty(self):
        self.assertEqual(REPORTS['geo'].present([]), [])


class TestTopBrowsers(unittest.TestCase):

    def setUp(self):
        sessions = [100, 90, 80, 70, 60, 50, 40, 30, 20, 10, 5, 1]
        self.records = [{'browser': f"Browser {i}", 'sessions': count} for i, count in enumerate(sessions)]

    def test_tail_grouped_as_others(self):
        result = summarize_top_browsers(self.records, 10)
        self.assertEqual(len(result), 10)
        self.assertEqual(result[:9], self.records[:9])
        self.assertEqual(result[9], {'browser': 'Others', 'sessions': 10 + 5 + 1})

    def test_short_list_unchanged(self):
        self.assertEqual(summarize_top_browsers(self.records[:10], 10), self.records[:10])

    def test_limit_of_one(self):
        self.assertEqual(summarize_top_browsers(self.records, 1), [{'browser': 'Others', 'sessions': 556}])


class TestTrafficByDayHour(unittest.TestCase):

    def test_grouped_under_weekday(self):
        spec = REPORTS['traffic_by_day_hour']
        records = spec.present([['2024010100', '5'], ['2024010101', '7']])
        self.assertEqual(group_by_weekday(records), {
            'Monday': [{'hour': '00', 'visitors': 5}, {'hour': '01', 'visitors': 7}],
        })

    def test_provider_order_kept(self):
        spec = REPORTS['traffic_by_day_hour']
        records = spec.present([['2024010123', '1'], ['2024010200', '2'], ['2024010105', '3']])
        grouped = group_by_weekday(records)
        self.assertEqual(list(grouped), ['Monday', 'Tuesday'])
        self.assertEqual([h['hour'] for h in grouped['Monday']], ['23', '05'])

    def test_empty(self):
        self.assertEqual(group_by_weekday([]), {})


if __name__ == "__main__":
    unittest.main()
