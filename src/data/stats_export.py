"""Statistics and exporter.

Miss accounting follows the visualizer: a miss on a never-seen address
that also evicts a resident block counts as *both* a compulsory and a
capacity miss. `both_misses` records how many accesses were counted twice,
so that

    hits + compulsory_misses + capacity_misses - both_misses == accesses
"""
import csv
import json
import logging
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatsSnapshot:
    hits: int = 0
    compulsory_misses: int = 0
    capacity_misses: int = 0
    accesses: int = 0
    both_misses: int = 0

    @property
    def misses(self) -> int:
        return self.accesses - self.hits

    @property
    def hit_rate(self) -> float:
        return (self.hits / self.accesses) if self.accesses else 0.0

    @property
    def miss_rate(self) -> float:
        return (self.misses / self.accesses) if self.accesses else 0.0

    def to_dict(self) -> Dict[str, float]:
        d = asdict(self)
        d.update(misses=self.misses, hit_rate=self.hit_rate, miss_rate=self.miss_rate)
        return d


class Statistics:
    def __init__(self):
        self.reset()

    def reset(self):
        # counters start from zero
        self.accesses = 0
        self.hits = 0
        self.compulsory_misses = 0
        self.capacity_misses = 0
        self.both_misses = 0

    def record_hit(self):
        self.accesses += 1
        self.hits += 1

    def record_miss(self, compulsory: bool, capacity: bool):
        # one access; may land in both buckets
        self.accesses += 1
        if compulsory:
            self.compulsory_misses += 1
        if capacity:
            self.capacity_misses += 1
        if compulsory and capacity:
            self.both_misses += 1

    @property
    def misses(self):
        return self.accesses - self.hits

    @property
    def hit_rate(self):
        return (self.hits / self.accesses) if self.accesses else 0.0

    @property
    def miss_rate(self):
        return (self.misses / self.accesses) if self.accesses else 0.0

    def snapshot(self) -> StatsSnapshot:
        return StatsSnapshot(
            hits=self.hits,
            compulsory_misses=self.compulsory_misses,
            capacity_misses=self.capacity_misses,
            accesses=self.accesses,
            both_misses=self.both_misses,
        )


def hit_rate_history(history: Iterable) -> List[float]:
    """Running hit rate after each access, oldest access first.

    `history` is the simulator's most-recent-first sequence of records.
    """
    rates = []
    hits = 0
    for n, record in enumerate(reversed(list(history)), start=1):
        if record.is_hit:
            hits += 1
        rates.append(hits / n)
    return rates


def export_chart_json(hit_rate_history: List[float], stats: Dict[str, float], fpath: str) -> str:
    """Export hit-rate history and stats to a JSON file. Returns the saved path."""
    data = {
        'hit_rate_history': list(hit_rate_history),
        'stats': stats,
    }
    with open(fpath, 'w', encoding='utf-8') as fh:
        json.dump(data, fh, indent=2)
    logger.info("wrote chart data to %s", fpath)
    return fpath


def export_chart_pdf(hit_rate_history: List[float], fpath: str, title: Optional[str] = None) -> str:
    """Render the hit-rate history to a PDF using matplotlib and save it."""
    import matplotlib
    matplotlib.use('Agg')
    import matplotlib.pyplot as plt

    data = list(hit_rate_history) or [0]
    fig, ax = plt.subplots(figsize=(6, 2))
    ax.plot(range(len(data)), data, color='#FFA500', linewidth=2)
    ax.fill_between(range(len(data)), data, color='#FFA500', alpha=0.1)
    ax.set_ylim(0, 1)
    ax.set_xlabel('Access')
    ax.set_ylabel('Hit rate')
    if title:
        ax.set_title(title)
    ax.grid(False)
    fig.tight_layout()
    fig.savefig(fpath, format='pdf', dpi=150)
    plt.close(fig)
    logger.info("wrote hit-rate chart to %s", fpath)
    return fpath


class Exporter:
    @staticmethod
    def export_stats_csv(path: str, stats):
        with open(path, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(['accesses', 'hits', 'misses', 'compulsory_misses', 'capacity_misses',
                             'both_misses', 'hit_rate', 'miss_rate'])
            writer.writerow([
                stats.accesses, stats.hits, stats.misses, stats.compulsory_misses, stats.capacity_misses,
                stats.both_misses, stats.hit_rate, stats.miss_rate,
            ])
        logger.info("wrote stats to %s", path)

    @staticmethod
    def export_history_csv(path: str, history: Iterable):
        # oldest first, which is how a trace reads
        with open(path, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(['sequence', 'address', 'tag', 'set_or_index', 'offset', 'slot', 'outcome', 'miss_kind'])
            for r in reversed(list(history)):
                writer.writerow([
                    r.sequence_number, r.address, r.tag,
                    '' if r.set_or_index is None else r.set_or_index,
                    r.offset, r.slot, r.outcome.value,
                    '' if r.miss_kind is None else r.miss_kind.value,
                ])
        logger.info("wrote access history to %s", path)
