"""AdaptCache CLI - Inspect, warm and exercise the named caches"""

import json
import logging
import random
from typing import Dict, List, Optional, Tuple

import click
from prometheus_client import generate_latest
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..cache_core.config import ConfigManager
from ..cache_core.exceptions import AdaptCacheError
from ..cache_core.metrics import CacheMetricsExporter
from ..cache_engine.optimized_cache import OptimizedCache
from ..cache_engine.registry import CacheRegistry, create_default_registry

logger = logging.getLogger(__name__)


def run_synthetic_workload(cache: OptimizedCache, operations: int, key_space: int,
                           rng: random.Random) -> Dict[str, int]:
    """Skewed read-through traffic: a few hot keys, a long tail of cold ones"""
    loaded = 0
    for _ in range(operations):
        index = min(key_space - 1, int(rng.paretovariate(1.2)) - 1)
        key = f"{cache.name}:item:{index}"
        if cache.get(key) is None:
            cache.set(key, {'id': index, 'cache': cache.name})
            loaded += 1
    return {'operations': operations, 'loaded': loaded}


def run_maintenance_cycle(cache: OptimizedCache) -> Dict[str, object]:
    """One pass of every background task, in schedule order"""
    return {
        'expired': len(cache.remove_expired()),
        'analysis': cache.analyze_access_patterns().total,
        'hit_rate_improved': cache.check_hit_rate(),
        'evicted': len(cache.optimize_cache_strategy()['evicted']),
        'preload': cache.execute_preload_strategy(),
    }


def render_stats_table(registry: CacheRegistry, names: List[str]) -> Table:
    table = Table(title="Cache Statistics", show_header=True, header_style="bold magenta")
    for column in ("Cache", "Hits", "Misses", "Hit Rate", "Display Hit Rate",
                   "Keys", "Size (KB)", "Preload Queue"):
        table.add_column(column, style="cyan", no_wrap=True)

    for name in names:
        cache = registry.get(name)
        stats = cache.get_stats()
        table.add_row(
            name,
            str(stats.hits),
            str(stats.misses),
            f"{stats.hit_rate:.1f}%",
            f"{stats.display_hit_rate:.1f}%",
            str(stats.keys),
            f"{stats.size / 1024:.0f}",
            str(cache.preload_queue_size),
        )
    return table


def _select_caches(registry: CacheRegistry, requested: Tuple[str, ...]) -> List[str]:
    if not requested:
        return registry.names()
    unknown = [name for name in requested if name not in registry]
    if unknown:
        raise click.BadParameter(f"unknown cache(s): {', '.join(unknown)}. "
                                 f"Available: {', '.join(registry.names())}", param_hint="--cache")
    return list(requested)


@click.command(context_settings={'help_option_names': ['-h', '--help']})
@click.version_option(version=__version__, prog_name="adaptcache")
@click.option('-c', '--config', 'config_path', type=click.Path(dir_okay=False),
              help='YAML/JSON file with per-cache settings')
@click.option('-n', '--cache', 'cache_names', multiple=True, help='Limit output to these caches (repeatable)')
@click.option('-w', '--warmup', is_flag=True, help='Run cache warmup before reporting')
@click.option('-s', '--simulate', type=click.IntRange(min=0), default=0,
              help='Run this many synthetic get/set operations per cache')
@click.option('-k', '--key-space', type=click.IntRange(min=1), default=200,
              help='Distinct keys used by the synthetic workload')
@click.option('--seed', type=int, default=None, help='Random seed for the synthetic workload')
@click.option('-m', '--maintenance', is_flag=True, help='Run one maintenance cycle after the workload')
@click.option('-j', '--json', 'as_json', is_flag=True, help='Print full optimization reports as JSON')
@click.option('-P', '--prometheus', is_flag=True, help='Print statistics in Prometheus text format')
@click.option('-V', '--verbose', is_flag=True, help='Verbose output (DEBUG level)')
@click.option('-q', '--quiet', is_flag=True, help='Quiet mode (WARNING level)')
@click.option('-N', '--silent', is_flag=True, help='Silent mode (ERROR level)')
def main_cli(config_path: Optional[str], cache_names: Tuple[str, ...], warmup: bool, simulate: int,
             key_space: int, seed: Optional[int], maintenance: bool, as_json: bool, prometheus: bool,
             verbose: bool, quiet: bool, silent: bool):
    """Build the named caches, optionally exercise them, and report their state."""
    try:
        config_manager = ConfigManager(config_path) if config_path else None
        registry = create_default_registry(config_manager, start_maintenance=False)
    except AdaptCacheError as e:
        raise click.ClickException(str(e))

    try:
        names = _select_caches(registry, cache_names)
        rng = random.Random(seed)

        for name in names:
            cache = registry.get(name)
            if warmup:
                cache.warmup_cache()
            if simulate:
                result = run_synthetic_workload(cache, simulate, key_space, rng)
                logger.debug(f"Workload on {name}: {result}")
            if maintenance:
                result = run_maintenance_cycle(cache)
                logger.debug(f"Maintenance on {name}: {result}")

        if as_json:
            reports = {name: registry.get(name).get_optimization_report() for name in names}
            click.echo(json.dumps(reports, indent=2, default=str))
        elif prometheus:
            exporter = CacheMetricsExporter(registry)
            exporter.update()
            click.echo(generate_latest(exporter.registry).decode('utf-8'), nl=False)
        else:
            Console().print(render_stats_table(registry, names))
    finally:
        registry.shutdown_all()


def cli_main():
    """Console script entry point"""
    return main_cli(prog_name="adaptcache")
