import pytest
from src.simulation.simulation import SCENARIOS, Simulation, generate_scenario


@pytest.mark.parametrize('name', SCENARIOS)
def test_builtin_scenarios_produce_results(name):
    sim = Simulation(mapping_strategy='set-associative', replacement_policy='LRU')
    results = sim.run_scenario(name, seed=3)
    assert isinstance(results, list)
    assert len(results) > 0, f"Scenario {name} produced no results"
    assert results[-1].stats.accesses == len(results)


def test_matrix_traversal_is_row_major():
    seq = generate_scenario('Matrix Traversal')
    assert seq == list(range(100))


def test_random_access_is_seeded():
    a = generate_scenario('Random Access', seed=10)
    b = generate_scenario('Random Access', seed=10)
    assert a == b
    assert len(a) == 16
    assert all(0 <= x <= 255 for x in a)


def test_conflict_scenario_thrashes_direct_mapping():
    # every address maps to slot 0, so a direct cache never hits
    sim = Simulation(cache_capacity=8, mapping_strategy='direct')
    results = sim.run_scenario('Conflict')
    assert results[-1].stats.hits == 0
    # a fully-associative cache of the same size keeps all four
    fa = Simulation(cache_capacity=8, mapping_strategy='fully-associative')
    assert fa.run_scenario('Conflict')[-1].stats.hits == 8


def test_unknown_scenario_falls_back_to_interleaved_stream():
    seq = generate_scenario('Something Else')
    assert len(seq) == 64
    assert seq[:4] == [0, 100, 1, 101]
