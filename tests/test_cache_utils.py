#!/usr/bin/env python3
"""
Tests for cache key generation and the report cache layer.
"""

import os
import shutil
import sqlite3
import sys
import tempfile
import unittest
from datetime import date
from unittest.mock import Mock

import diskcache as dc

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from analytics_reports.cache_utils import CACHE_KEY_PREFIX, ReportCache, generate_cache_key
from analytics_reports.exceptions import CacheBackendError
from analytics_reports.period import Period
from analytics_reports.query_models import build_query

BASE_ARGS = ["123", "2024-01-01", "2024-01-31", ["users"], ["date"], "users", None, {}]


class TestGenerateCacheKey(unittest.TestCase):

    def test_deterministic(self):
        self.assertEqual(generate_cache_key(BASE_ARGS), generate_cache_key(list(BASE_ARGS)))

    def test_namespace_prefix(self):
        self.assertTrue(generate_cache_key(BASE_ARGS).startswith(CACHE_KEY_PREFIX))
        self.assertTrue(generate_cache_key(BASE_ARGS, prefix="other.").startswith("other."))

    def test_each_argument_changes_key(self):
        changes = {
            0: "456",
            1: "2024-01-02",
            2: "2024-01-30",
            3: ["users", "pageviews"],
            4: ["date", "pageTitle"],
            5: "pageviews",
            6: 10,
            7: {"samplingLevel": "LARGE"},
        }
        base_key = generate_cache_key(BASE_ARGS)
        for index, value in changes.items():
            args = list(BASE_ARGS)
            args[index] = value
            self.assertNotEqual(generate_cache_key(args), base_key, f"argument {index} did not change the key")

    def test_order_sensitive(self):
        swapped = list(BASE_ARGS)
        swapped[1], swapped[2] = swapped[2], swapped[1]
        self.assertNotEqual(generate_cache_key(swapped), generate_cache_key(BASE_ARGS))

        metrics_swapped = list(BASE_ARGS)
        metrics_swapped[3] = ["pageviews", "users"]
        other = list(BASE_ARGS)
        other[3] = ["users", "pageviews"]
        self.assertNotEqual(generate_cache_key(metrics_swapped), generate_cache_key(other))

    def test_omitted_optional_matches_explicit_none(self):
        period = Period(date(2024, 1, 1), date(2024, 1, 31))
        omitted = build_query("123", period, ["users"], ["date"])
        explicit = build_query("123", period, ["users"], ["date"], sort_by_field=None, max_results=None, extra=None)
        self.assertEqual(generate_cache_key(omitted.cache_args()), generate_cache_key(explicit.cache_args()))

    def test_absent_and_set_limit_differ(self):
        period = Period(date(2024, 1, 1), date(2024, 1, 31))
        absent = build_query("123", period, ["sessions"], ["browser"])
        limited = build_query("123", period, ["sessions"], ["browser"], max_results=10)
        self.assertNotEqual(generate_cache_key(absent.cache_args()), generate_cache_key(limited.cache_args()))


class TestReportCache(unittest.TestCase):

    def setUp(self):
        self.cache_dir = tempfile.mkdtemp()
        self.backend = dc.Cache(self.cache_dir)
        self.cache = ReportCache(self.backend)

    def tearDown(self):
        self.backend.close()
        shutil.rmtree(self.cache_dir, ignore_errors=True)

    def test_remember_computes_once(self):
        compute = Mock(return_value=[["a", "1"]])
        self.assertEqual(self.cache.remember("key", 10, compute), [["a", "1"]])
        self.assertEqual(self.cache.remember("key", 10, compute), [["a", "1"]])
        compute.assert_called_once()

    def test_empty_result_is_a_hit(self):
        compute = Mock(return_value=[])
        self.cache.remember("key", 10, compute)
        self.assertEqual(self.cache.remember("key", 10, compute), [])
        compute.assert_called_once()

    def test_zero_lifetime_is_not_stored(self):
        compute = Mock(return_value=[["a"]])
        self.cache.remember("key", 0, compute)
        self.cache.remember("key", 0, compute)
        self.assertEqual(compute.call_count, 2)
        self.assertIsNone(self.cache.get("key"))

    def test_forget(self):
        self.cache.remember("key", 10, lambda: [["a"]])
        self.cache.forget("key")
        self.assertIsNone(self.cache.get("key"))

    def test_prefix_namespaces_entries(self):
        other = ReportCache(self.backend, prefix="token-abc.")
        self.cache.remember("key", 10, lambda: [["mine"]])
        self.assertIsNone(other.get("key"))
        self.assertEqual(self.backend.get("token-abc.key"), None)
        self.assertEqual(self.backend.get("key"), [["mine"]])

    def test_on_disk_creates_directory(self):
        target = os.path.join(self.cache_dir, "nested")
        cache = ReportCache.on_disk(target, size_limit=1024 * 1024)
        try:
            self.assertTrue(os.path.isdir(target))
            self.assertEqual(cache.remember("key", 1, lambda: ["x"]), ["x"])
        finally:
            cache.backend.close()


class TestCacheBackendErrors(unittest.TestCase):

    def test_read_failure_propagates(self):
        backend = Mock()
        backend.get.side_effect = sqlite3.OperationalError("database is locked")
        cache = ReportCache(backend)
        compute = Mock()
        with self.assertRaises(CacheBackendError):
            cache.remember("key", 10, compute)
        compute.assert_not_called()

    def test_write_failure_propagates(self):
        backend = Mock()
        backend.get.side_effect = lambda key, default=None: default
        backend.set.side_effect = OSError("disk full")
        with self.assertRaises(CacheBackendError):
            ReportCache(backend).remember("key", 10, lambda: ["x"])

    def test_delete_failure_propagates(self):
        backend = Mock()
        backend.delete.side_effect = OSError("read-only")
        with self.assertRaises(CacheBackendError):
            ReportCache(backend).forget("key")


if __name__ == "__main__":
    unittest.main()
