import random
from functools import lru_cache

import pytest

from belady import (OptSimulator, SimulationStats, beladys_min, next_use,
                    select_victim, validate_associativity)
from cache import CacheSet
from errors import ConfigurationError
from get_lines import build_schedule


def simulate(trace, associativity):
    trace = list(trace)
    simulator = OptSimulator(trace, build_schedule(trace), associativity)
    return list(simulator.steps()), simulator.stats


def fewest_misses(trace, associativity):
    """Exhaustive search over every eviction choice."""
    trace = tuple(trace)

    @lru_cache(maxsize=None)
    def go(i, resident):
        if i == len(trace):
            return 0
        line = trace[i]
        if line in resident:
            return go(i + 1, resident)
        if len(resident) < associativity:
            return 1 + go(i + 1, resident | {line})
        return 1 + min(go(i + 1, (resident - {victim}) | {line}) for victim in resident)

    return go(0, frozenset())


def test_example_trace_step_by_step():
    events, stats = simulate([1, 2, 3, 1, 2, 3], 2)

    assert [e.hit for e in events] == [False, False, False, True, False, True]
    assert [e.cache for e in events] == [
        (1, None),
        (1, 2),
        (1, 3),
        (1, 3),
        (2, 3),
        (2, 3),
    ]
    assert [e.evicted for e in events] == [None, None, 2, None, 1, None]
    assert [e.index for e in events] == list(range(6))
    assert stats == SimulationStats(hits=2, total=6)
    assert stats.hit_ratio == pytest.approx(1 / 3)


def test_never_reused_lines_tie_to_first_slot():
    events, _ = simulate([1, 2, 3], 2)
    assert events[-1].evicted == 1
    assert events[-1].cache == (3, 2)


def test_never_reused_line_beats_finite_next_use():
    events, _ = simulate([1, 2, 3, 1], 2)
    assert events[2].evicted == 2
    assert events[2].cache == (1, 3)
    assert events[3].hit


def test_evicts_furthest_next_use():
    # at step 3 the next uses are 1 -> 5, 2 -> 4, 3 -> 6
    events, stats = simulate([1, 2, 3, 4, 2, 1, 3], 3)
    assert events[3].evicted == 3
    assert events[3].cache == (1, 2, 4)
    assert stats.hits == 2


def test_distinct_lines_that_fit_never_hit():
    events, stats = simulate([5, 6, 7], 3)
    assert stats.hits == 0
    assert stats.misses == 3
    assert all(e.evicted is None for e in events)
    assert events[-1].cache == (5, 6, 7)


@pytest.mark.parametrize("associativity", [1, 2, 7])
def test_single_line_repeated(associativity):
    _, stats = simulate([42] * 10, associativity)
    assert stats.hits == 9
    assert stats.total == 10


def test_negative_line_numbers_are_ordinary_lines():
    events, stats = simulate([-1, -1, 0, -1], 1)
    assert [e.hit for e in events] == [False, True, False, False]
    assert stats.hits == 1


def test_empty_trace():
    events, stats = simulate([], 4)
    assert events == []
    assert stats.hits == 0
    assert stats.total == 0
    assert stats.hit_ratio == 0.0


def test_matches_exhaustive_search_on_small_traces():
    rng = random.Random(1234)
    for _ in range(300):
        length = rng.randint(0, 8)
        trace = [rng.randint(0, 4) for _ in range(length)]
        associativity = rng.randint(1, 3)

        _, stats = simulate(trace, associativity)

        assert stats.misses == fewest_misses(trace, associativity), (trace, associativity)


def test_cache_invariants_hold_every_step():
    rng = random.Random(99)
    for _ in range(50):
        trace = [rng.randint(0, 9) for _ in range(rng.randint(0, 60))]
        associativity = rng.randint(1, 5)
        simulator = OptSimulator(trace, build_schedule(trace), associativity)

        hits = misses = 0
        for event in simulator.steps():
            residents = [line for line in event.cache if line is not None]
            assert len(residents) <= associativity
            assert len(residents) == len(set(residents))
            assert len(residents) == len(simulator.cache)
            assert event.line in residents
            if event.hit:
                hits += 1
            else:
                misses += 1

        assert hits + misses == len(trace)
        assert simulator.stats.total == len(trace)


def test_reuse_schedule_drains_with_trace():
    trace = [3, 1, 3, 3, 2]
    simulator = OptSimulator(trace, build_schedule(trace), 2)
    simulator.step()
    assert list(simulator.access_time_pattern[3]) == [2, 3]
    simulator.run()
    assert all(not times for times in simulator.access_time_pattern.values())
    assert not simulator.access_pattern


def test_loaded_schedule_is_reusable():
    trace = [1, 2, 3, 1, 2, 3]
    schedule = build_schedule(trace)

    first = OptSimulator(trace, schedule, 2).run()
    second = OptSimulator(trace, schedule, 2).run()

    assert first == second
    assert list(schedule[1]) == [0, 3]


def test_run_passes_events_to_callback():
    trace = [1, 1, 2]
    seen = []
    stats = OptSimulator(trace, build_schedule(trace), 1).run(seen.append)
    assert [e.line for e in seen] == trace
    assert stats.hits == 1


def test_schedule_out_of_step_with_trace():
    simulator = OptSimulator([1, 2], {1: [1], 2: [0]}, 2)
    with pytest.raises(ValueError):
        simulator.step()


@pytest.mark.parametrize("associativity", [0, -3, 1001])
def test_associativity_out_of_range(associativity):
    with pytest.raises(ConfigurationError):
        OptSimulator([1, 2], build_schedule([1, 2]), associativity)


def test_associativity_bound_is_configurable():
    OptSimulator([1], build_schedule([1]), 1000)
    with pytest.raises(ConfigurationError):
        OptSimulator([1], build_schedule([1]), 9, max_capacity=8)
    assert validate_associativity(8, max_capacity=8) == 8


@pytest.mark.parametrize("associativity", [True, 2.0, "2", None])
def test_associativity_must_be_an_integer(associativity):
    with pytest.raises(ConfigurationError):
        validate_associativity(associativity)


def test_next_use_and_victim_selection():
    schedule = build_schedule([7, 8, 9, 8, 7])
    for line in (7, 8, 9):
        schedule[line].popleft()

    assert next_use(schedule, 7) == 4
    assert next_use(schedule, 9) is None

    cache = CacheSet(3)
    for line in (7, 8, 9):
        cache.insert(line)
    assert select_victim(cache, schedule) == 2

    schedule[9].append(10)
    assert select_victim(cache, schedule) == 2
    schedule[9].clear()
    schedule[7].clear()
    assert select_victim(cache, schedule) == 0


def test_beladys_min():
    stats = beladys_min(2, iter([1, 2, 3, 1, 2, 3]))
    assert (stats.hits, stats.total) == (2, 6)
