"""Tests for statistics bookkeeping, exporters and the command-line entry point."""

import csv
import json

import pytest
import run
from src.core.simulator import CacheSimulator
from src.data.stats_export import (
    Exporter,
    Statistics,
    export_chart_json,
    export_chart_pdf,
    hit_rate_history,
)


def test_statistics_counters():
    s = Statistics()
    s.record_hit()
    s.record_miss(compulsory=True, capacity=False)
    s.record_miss(compulsory=True, capacity=True)
    s.record_miss(compulsory=False, capacity=True)
    assert s.accesses == 4
    assert s.hits == 1
    assert s.misses == 3
    assert s.compulsory_misses == 2
    assert s.capacity_misses == 2
    assert s.both_misses == 1
    assert s.hit_rate == pytest.approx(0.25)
    assert s.miss_rate == pytest.approx(0.75)
    snap = s.snapshot()
    assert snap.to_dict()['misses'] == 3
    s.reset()
    assert s.accesses == s.hits == s.both_misses == 0
    assert s.hit_rate == 0.0
    # the snapshot taken before reset is unaffected
    assert snap.accesses == 4


def test_hit_rate_history():
    # direct cache: 0 miss, 0 hit, 8 evicts 0, 0 misses again
    state = CacheSimulator().run_all([0, 0, 8, 0])
    assert hit_rate_history(state.history) == pytest.approx([0.0, 0.5, 1 / 3, 0.25])
    assert hit_rate_history(()) == []


def test_export_stats_and_history_csv(tmp_path):
    state = CacheSimulator(mapping_strategy='fully-associative').run_all([1, 1, 2])
    stats_path = tmp_path / 'stats.csv'
    Exporter.export_stats_csv(str(stats_path), state.stats)
    with open(stats_path, newline='') as f:
        rows = list(csv.DictReader(f))
    assert rows[0]['accesses'] == '3'
    assert rows[0]['hits'] == '1'
    assert rows[0]['compulsory_misses'] == '2'

    hist_path = tmp_path / 'history.csv'
    Exporter.export_history_csv(str(hist_path), state.history)
    with open(hist_path, newline='') as f:
        rows = list(csv.DictReader(f))
    # oldest first
    assert [r['address'] for r in rows] == ['1', '1', '2']
    assert [r['outcome'] for r in rows] == ['miss', 'hit', 'miss']
    assert rows[0]['miss_kind'] == 'compulsory'
    assert rows[1]['miss_kind'] == ''
    # fully-associative has no index
    assert rows[0]['set_or_index'] == ''


def test_export_chart_json(tmp_path):
    state = CacheSimulator().run_all([0, 0])
    path = tmp_path / 'chart.json'
    out = export_chart_json(hit_rate_history(state.history), state.stats.to_dict(), str(path))
    assert out == str(path)
    data = json.loads(path.read_text())
    assert data['hit_rate_history'] == [0.0, 0.5]
    assert data['stats']['hits'] == 1


def test_export_chart_pdf(tmp_path):
    pytest.importorskip('matplotlib')
    path = tmp_path / 'chart.pdf'
    export_chart_pdf([0.0, 0.5, 0.66], str(path), title='direct / FIFO')
    assert path.read_bytes().startswith(b'%PDF')


def test_cli_runs_addresses(capsys):
    assert run.main(['0', '0', '8']) == 0
    out = capsys.readouterr().out
    assert 'Hits: 1' in out
    assert 'miss (both)' in out


def test_cli_demo_and_scenario(capsys):
    assert run.main([]) == 0
    assert run.main(['--scenario', 'Conflict', '--mapping', 'fully-associative', '--policy', 'lfu']) == 0
    out = capsys.readouterr().out
    assert 'fully-associative, LFU' in out


def test_cli_compare(capsys):
    assert run.main(['0,8,0', '--compare', 'fully-associative:LRU']) == 0
    out = capsys.readouterr().out
    assert '== left: direct, FIFO' in out
    assert '== right: fully-associative, LRU' in out


def test_cli_exports(tmp_path):
    csv_path = tmp_path / 'stats.csv'
    json_path = tmp_path / 'chart.json'
    assert run.main(['1', '2', '1', '--export-csv', str(csv_path), '--export-json', str(json_path)]) == 0
    assert csv_path.exists()
    assert (tmp_path / 'stats.csv.history.csv').exists()
    assert json.loads(json_path.read_text())['stats']['accesses'] == 3


def test_cli_config_file(tmp_path, capsys):
    cfg = tmp_path / 'cache.json'
    cfg.write_text(json.dumps({'cache_capacity': 4, 'set_size': 2, 'mapping_strategy': 'set-associative'}))
    assert run.main(['--config', str(cfg), '1', '3', '5', '--policy', 'LRU']) == 0
    out = capsys.readouterr().out
    assert 'set-associative, LRU, 4 blocks' in out


@pytest.mark.parametrize('argv', [
    ['--mapping', 'diagonal'],
    ['--mapping', 'set-associative', '--set-size', '3'],
    ['--address-bits', '4', '--offset-bits', '2', '99'],
    ['12', 'xyz'],
])
def test_cli_reports_errors(argv):
    assert run.main(argv) == 2


def test_cli_reports_missing_config_file(tmp_path, caplog):
    assert run.main(['--config', str(tmp_path / 'nope.json'), '0']) == 2
    assert 'nope.json' in caplog.text
