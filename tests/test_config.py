#!/usr/bin/env python3
"""Unit tests for cache configuration and file loading"""

import json
import os
import tempfile
import unittest

from adaptcache.cache_core.config import CacheConfig, ConfigManager
from adaptcache.cache_core.exceptions import AdaptCacheError, ConfigurationError


class TestCacheConfig(unittest.TestCase):
    """Test defaults and validation of per-cache settings"""

    def test_defaults(self):
        config = CacheConfig()
        self.assertEqual(config.base_ttl, 300)
        self.assertEqual(config.max_keys, 1000)
        self.assertTrue(config.adaptive_ttl_enabled)
        self.assertEqual(config.critical_keys, ())
        self.assertEqual(config.target_hit_rate, 85)
        self.assertEqual(config.preload_batch_size, 5)

    def test_invalid_settings_rejected(self):
        invalid = [
            {'max_keys': 0},
            {'max_keys': -5},
            {'max_keys': True},
            {'max_keys': 10.5},
            {'base_ttl': 0},
            {'check_period': -1},
            {'optimization_interval': 0},
            {'target_hit_rate': 120},
            {'preload_threshold': -1},
            {'expiry_preload_threshold': 101},
            {'preload_batch_size': 0},
            {'preload_queue_size': 0},
            {'critical_keys': ('',)},
            {'critical_keys': (42,)},
        ]
        for settings in invalid:
            with self.subTest(settings=settings):
                with self.assertRaises(ConfigurationError):
                    CacheConfig(**settings)

    def test_lists_are_normalized_to_tuples(self):
        config = CacheConfig(critical_keys=['a', 'b'], preload_strategies=['frequency'])
        self.assertEqual(config.critical_keys, ('a', 'b'))
        self.assertEqual(config.preload_strategies, ('frequency',))
        self.assertEqual(config.to_dict()['critical_keys'], ['a', 'b'])

    def test_from_dict_rejects_unknown_settings(self):
        with self.assertRaises(ConfigurationError) as ctx:
            CacheConfig.from_dict({'base_ttl': 60, 'stdTTL': 60})
        self.assertIn('stdTTL', str(ctx.exception))
        self.assertIsInstance(ctx.exception, AdaptCacheError)

    def test_round_trip_through_dict(self):
        config = CacheConfig(base_ttl=60, max_keys=500, critical_keys=('/api/health',))
        self.assertEqual(CacheConfig.from_dict(config.to_dict()), config)


class TestConfigManager(unittest.TestCase):
    """Test loading named configurations from YAML and JSON files"""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.temp_dir.cleanup()

    def write(self, name, content):
        path = os.path.join(self.temp_dir.name, name)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        return path

    def test_load_yaml(self):
        path = self.write('caches.yaml', (
            "api:\n"
            "  base_ttl: 60\n"
            "  max_keys: 500\n"
            "  critical_keys:\n"
            "    - /api/health\n"
            "session:\n"
            "  base_ttl: 1800\n"
        ))
        manager = ConfigManager(path)
        self.assertEqual(manager.names(), ['api', 'session'])
        self.assertEqual(manager.get('api').base_ttl, 60)
        self.assertEqual(manager.get('api').critical_keys, ('/api/health',))
        self.assertEqual(manager.get('session').max_keys, 1000)
        self.assertIsNone(manager.get('unknown'))

    def test_load_json(self):
        path = self.write('caches.json', json.dumps({'health': {'adaptive_ttl_enabled': False}}))
        manager = ConfigManager(path)
        self.assertFalse(manager.get('health').adaptive_ttl_enabled)

    def test_empty_yaml_file(self):
        path = self.write('empty.yaml', "")
        self.assertEqual(ConfigManager(path).names(), [])

    def test_overrides_merge_with_file(self):
        path = self.write('caches.yaml', "api:\n  base_ttl: 60\n  max_keys: 500\n")
        manager = ConfigManager(path, overrides={'api': {'max_keys': 50}, 'extra': {'base_ttl': 5}})
        self.assertEqual(manager.get('api').base_ttl, 60)
        self.assertEqual(manager.get('api').max_keys, 50)
        self.assertEqual(manager.get('extra').base_ttl, 5)

    def test_load_errors(self):
        cases = {
            'missing': os.path.join(self.temp_dir.name, 'nope.yaml'),
            'not a mapping': self.write('list.yaml', "- a\n- b\n"),
            'bad yaml': self.write('broken.yaml', "api: [unclosed\n"),
            'bad json': self.write('broken.json', "{not json"),
            'settings not a mapping': self.write('scalar.yaml', "api: 60\n"),
            'invalid value': self.write('invalid.yaml', "api:\n  max_keys: 0\n"),
        }
        for label, path in cases.items():
            with self.subTest(case=label):
                with self.assertRaises(ConfigurationError):
                    ConfigManager(path)


if __name__ == '__main__':
    unittest.main()
