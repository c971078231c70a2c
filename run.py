"""Entry point for the Cache Memory Simulator.

Usage:
    python run.py                        # runs a short demo sequence
    python run.py 0 8 0 16 --mapping set-associative --policy LRU
    python run.py --scenario "Matrix Traversal" --passes 2
    python run.py 0,8,0 --compare fully-associative:LFU
"""
import argparse
import logging
import sys

from src.core.config import CacheConfig, load_config
from src.core.errors import CacheSimulatorError
from src.data.stats_export import Exporter, export_chart_json, export_chart_pdf, hit_rate_history
from src.simulation.simulation import SCENARIOS, Comparison, Simulation, generate_scenario, parse_addresses

logger = logging.getLogger("run")

DEMO_SEQUENCE = [0, 1, 2, 3, 0, 1, 8, 9, 0, 1, 16, 17]


def build_parser():
    p = argparse.ArgumentParser(description="Cache mapping and replacement policy simulator")
    p.add_argument('addresses', nargs='*', help="addresses (decimal, or hex with 0x / hex letters); commas allowed")
    p.add_argument('--config', help="JSON file with cache configuration")
    p.add_argument('--mapping', help="direct | fully-associative | set-associative")
    p.add_argument('--policy', help="FIFO | LRU | LFU | Random")
    p.add_argument('--capacity', type=int, help="number of cache blocks")
    p.add_argument('--set-size', type=int, help="blocks per set (set-associative)")
    p.add_argument('--address-bits', type=int)
    p.add_argument('--offset-bits', type=int)
    p.add_argument('--scenario', help="built-in address stream: " + ", ".join(SCENARIOS))
    p.add_argument('--passes', type=int, default=1, help="how many times to replay the sequence")
    p.add_argument('--seed', type=int, help="seed for Random replacement and random scenarios")
    p.add_argument('--compare', metavar='MAPPING:POLICY', help="run a second cache side by side")
    p.add_argument('--export-csv', help="write final statistics and access history to CSV (history in FILE.history.csv)")
    p.add_argument('--export-json', help="write hit-rate history and statistics to JSON")
    p.add_argument('--export-pdf', help="plot the running hit rate to PDF")
    p.add_argument('-v', '--verbose', action='count', default=0)
    return p


def config_from_args(args) -> CacheConfig:
    config = load_config(args.config) if args.config else CacheConfig()
    overrides = {
        'mapping_strategy': args.mapping,
        'replacement_policy': args.policy,
        'cache_capacity': args.capacity,
        'set_size': args.set_size,
        'address_bits': args.address_bits,
        'offset_bits': args.offset_bits,
    }
    d = config.to_dict()
    d.update({k: v for k, v in overrides.items() if v is not None})
    return CacheConfig.from_dict(d)


def print_state(title, state):
    cfg = state.config
    print(f"== {title}: {cfg.mapping_strategy.value}, {cfg.replacement_policy.value}, "
          f"{cfg.cache_capacity} blocks ==")
    print(f"{'#':>4} {'addr':>8} {'tag':>8} {'index':>6} {'offset':>6} {'slot':>4}  result")
    for r in reversed(state.history):
        index = '-' if r.set_or_index is None else r.set_or_index
        result = 'hit' if r.is_hit else f"miss ({r.miss_kind.value})"
        print(f"{r.sequence_number:>4} {r.address:>8} {r.tag:>8} {index:>6} {r.offset:>6} {r.slot:>4}  {result}")
    print("Cache:")
    for i, b in enumerate(state.blocks):
        content = '-' if b.is_empty else f"addr {b.occupied_address} tag {b.tag} freq {b.access_frequency}"
        print(f"  [{i}] {content}")
    s = state.stats
    print('Accesses:', s.accesses)
    print('Hits:', s.hits)
    print('Compulsory misses:', s.compulsory_misses)
    print('Capacity misses:', s.capacity_misses)
    print('Hit rate:', round(s.hit_rate, 4))


def export(args, state):
    if args.export_csv:
        Exporter.export_stats_csv(args.export_csv, state.stats)
        Exporter.export_history_csv(args.export_csv + '.history.csv', state.history)
    rates = hit_rate_history(state.history)
    if args.export_json:
        export_chart_json(rates, state.stats.to_dict(), args.export_json)
    if args.export_pdf:
        export_chart_pdf(rates, args.export_pdf, title=f"{state.config.mapping_strategy.value} / "
                                                          f"{state.config.replacement_policy.value}")


def main(argv=None):
    args = build_parser().parse_args(argv)
    level = logging.WARNING - 10 * min(args.verbose, 2)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        config = config_from_args(args)
        if args.scenario:
            items = None
        elif args.addresses:
            items = parse_addresses(' '.join(args.addresses))
        else:
            items = DEMO_SEQUENCE

        if args.compare:
            mapping, _, policy = args.compare.partition(':')
            right_overrides = {'mapping_strategy': mapping}
            if policy:
                right_overrides['replacement_policy'] = policy
            cmp = Comparison(Simulation(config, seed=args.seed, name='left'),
                             Simulation(config, seed=args.seed, name='right', **right_overrides))
            if items is None:
                items = generate_scenario(args.scenario, capacity=config.cache_capacity, seed=args.seed)
            cmp.run(items, num_passes=args.passes)
            for panel in cmp.panels:
                print_state(panel.name, panel.state())
                print()
            export(args, cmp.left.state())
        else:
            sim = Simulation(config, seed=args.seed)
            if items is None:
                sim.run_scenario(args.scenario, num_passes=args.passes, seed=args.seed)
            else:
                sim.run(items, num_passes=args.passes)
            state = sim.state()
            print_state('cache', state)
            export(args, state)
    except CacheSimulatorError as e:
        logger.error("%s", e)
        return 2
    return 0


if __name__ == '__main__':
    sys.exit(main())
