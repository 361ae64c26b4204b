#!/usr/bin/env python3
"""Unit tests for the cache registry, default profiles and metrics export"""

import unittest

from prometheus_client import CollectorRegistry

from adaptcache.cache_core.config import CacheConfig, ConfigManager
from adaptcache.cache_core.metrics import CacheMetricsExporter, CacheStats, compute_hit_rate
from adaptcache.cache_engine.registry import (
    CacheRegistry, create_default_registry, make_cache_key,
    api_default_value, service_default_value
)

from cache_test_utils import FakeClock


class TestDefaultRegistry(unittest.TestCase):
    """Test the reference deployment of four named caches"""

    def setUp(self):
        self.registry = create_default_registry(clock=FakeClock(), start_maintenance=False)

    def tearDown(self):
        self.registry.shutdown_all()

    def test_default_profiles(self):
        self.assertEqual(self.registry.names(), ['database', 'api', 'health', 'session'])
        self.assertEqual(len(self.registry), 4)

        expected = {
            'database': (300, 1000, True),
            'api': (60, 500, True),
            'health': (300, 500, False),
            'session': (1800, 2000, True),
        }
        for name, (ttl, max_keys, adaptive) in expected.items():
            with self.subTest(cache=name):
                config = self.registry.get(name).config
                self.assertEqual(config.base_ttl, ttl)
                self.assertEqual(config.max_keys, max_keys)
                self.assertEqual(config.adaptive_ttl_enabled, adaptive)

    def test_instances_are_independent(self):
        self.registry.get('api').set('shared', 1)
        self.assertFalse(self.registry.get('database').has('shared'))
        self.assertIsNot(self.registry.get('api').lock, self.registry.get('database').lock)

    def test_warmup_all(self):
        results = self.registry.warmup_all()
        self.assertEqual(results, {name: True for name in self.registry})

        self.assertEqual(self.registry.get('database').get('services:active'), {'status': 'default_status'})
        self.assertEqual(self.registry.get('database').get('users:count'), {'count': 0})
        self.assertEqual(self.registry.get('api').get('/api/health'), {'data': 'default api response'})
        self.assertTrue(self.registry.get('health').has('system:status'))
        self.assertTrue(self.registry.get('session').has('session:active'))

    def test_get_all_stats_and_reports(self):
        self.registry.get('api').set('/api/services', [])
        self.registry.get('api').get('/api/services')

        stats = self.registry.get_all_stats()
        self.assertIsInstance(stats['api'], CacheStats)
        self.assertEqual(stats['api'].hits, 1)
        self.assertEqual(stats['session'].keys, 0)

        reports = self.registry.get_all_reports()
        self.assertEqual(set(reports), set(self.registry.names()))

    def test_unknown_and_duplicate_names(self):
        with self.assertRaises(KeyError):
            self.registry.get('missing')
        with self.assertRaises(ValueError):
            self.registry.create('api', CacheConfig(), start_maintenance=False)


class TestRegistryConfiguration(unittest.TestCase):
    """Test file-driven overrides of the default profiles"""

    def test_config_overrides_profile_and_keeps_defaults(self):
        manager = ConfigManager(overrides={
            'api': {'base_ttl': 120, 'critical_keys': ['/api/health']},
            'reports': {'max_keys': 50},
        })
        registry = create_default_registry(manager, clock=FakeClock(), start_maintenance=False)
        try:
            self.assertEqual(registry.get('api').config.base_ttl, 120)
            self.assertEqual(registry.get('reports').config.max_keys, 50)

            registry.get('api').warmup_cache()
            self.assertTrue(registry.get('api').has('/api/health'))
            self.assertFalse(registry.get('api').has('/api/services'))
        finally:
            registry.shutdown_all()

    def test_preload_loaders_are_wired(self):
        registry = create_default_registry(
            preload_loaders={'database': lambda key: f"fresh-{key}"},
            clock=FakeClock(), start_maintenance=False
        )
        try:
            database = registry.get('database')
            database.warming.enqueue('users:count')
            database.execute_preload_strategy()
            self.assertEqual(database.get('users:count'), 'fresh-users:count')
            self.assertIsNone(registry.get('api').preload_loader)
        finally:
            registry.shutdown_all()


class TestDefaultValues(unittest.TestCase):
    """Test the per-subsystem default value factories"""

    def test_factories(self):
        cases = [
            (api_default_value, '/api/anything', {'data': 'default api response'}),
            (api_default_value, 'services:active', None),
            (service_default_value, 'services:active', {'status': 'default_status'}),
            (service_default_value, 'users:count', {'count': 0}),
            (service_default_value, 'other', None),
        ]
        for factory, key, expected in cases:
            with self.subTest(factory=factory.__name__, key=key):
                self.assertEqual(factory(key), expected)


class TestCacheKeys(unittest.TestCase):
    """Test deterministic key derivation"""

    def test_make_cache_key(self):
        key = make_cache_key('users', 42, None)
        self.assertEqual(len(key), 32)
        self.assertEqual(key, make_cache_key('users', 42, None))
        self.assertNotEqual(key, make_cache_key('users', 43, None))
        self.assertNotEqual(make_cache_key(None), make_cache_key('None'))
        self.assertEqual(make_cache_key({'a': 1}), make_cache_key({'a': 1}))


class TestMetrics(unittest.TestCase):
    """Test hit rate arithmetic and Prometheus export"""

    def test_compute_hit_rate(self):
        cases = [((0, 0), 0.0), ((3, 1), 75.0), ((1, 2), 33.33), ((5, 0), 100.0)]
        for (hits, misses), expected in cases:
            with self.subTest(hits=hits, misses=misses):
                self.assertEqual(compute_hit_rate(hits, misses), expected)

    def test_exporter_publishes_gauges(self):
        caches = CacheRegistry()
        api = caches.create('api', CacheConfig(base_ttl=60), clock=FakeClock(), start_maintenance=False)
        api.set('/api/health', 'ok')
        api.get('/api/health')
        api.get('/api/missing')
        api.get('/api/missing')

        prom_registry = CollectorRegistry()
        exporter = CacheMetricsExporter(caches, registry=prom_registry)
        exporter.update()

        labels = {'cache': 'api'}
        self.assertEqual(prom_registry.get_sample_value('adaptcache_hits', labels), 1.0)
        self.assertEqual(prom_registry.get_sample_value('adaptcache_misses', labels), 2.0)
        self.assertEqual(prom_registry.get_sample_value('adaptcache_hit_rate_percent', labels), 33.33)
        self.assertEqual(prom_registry.get_sample_value('adaptcache_keys', labels), 1.0)
        self.assertEqual(prom_registry.get_sample_value('adaptcache_size_bytes', labels), 1024.0)
        self.assertEqual(prom_registry.get_sample_value('adaptcache_preload_queue_size', labels), 1.0)

    def test_server_needs_port(self):
        exporter = CacheMetricsExporter(CacheRegistry(), registry=CollectorRegistry())
        with self.assertRaises(ValueError):
            exporter.start_server()


if __name__ == '__main__':
    unittest.main()
