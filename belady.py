import logging
import numbers
from collections import deque
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional, Tuple

from cache import CacheSet
from errors import ConfigurationError
from get_lines import build_schedule

logger = logging.getLogger(__name__)

MAX_CACHE_CAPACITY = 1000


@dataclass(frozen=True)
class SimulationStats:
    hits: int
    total: int

    @property
    def misses(self) -> int:
        return self.total - self.hits

    @property
    def hit_ratio(self) -> float:
        """Hits over total accesses; 0.0 for an empty trace."""
        if self.total == 0:
            return 0.0
        return self.hits / self.total


@dataclass(frozen=True)
class StepEvent:
    """One simulated access. ``cache`` is the set contents after the access."""

    index: int
    line: int
    cache: Tuple[Optional[int], ...]
    hit: bool
    evicted: Optional[int] = None


def validate_associativity(associativity, max_capacity=MAX_CACHE_CAPACITY):
    if isinstance(associativity, bool) or not isinstance(associativity, numbers.Integral):
        raise ConfigurationError(f"associativity must be an integer, got {associativity!r}")
    if associativity < 1 or associativity > max_capacity:
        raise ConfigurationError(
            f"associativity {associativity} outside [1, {max_capacity}]")
    return int(associativity)


def next_use(schedule, line) -> Optional[int]:
    """Next time step at which ``line`` is accessed, None if never again."""
    times = schedule[line]
    return times[0] if times else None


def select_victim(cache: CacheSet, schedule) -> int:
    """Slot of the resident line whose next use is furthest away.

    A line that is never used again beats any finite next use. Among equal
    keys the first slot in slot order wins.
    """
    farthest_index = None
    farthest_use = -1
    for index, line in enumerate(cache.slots):
        if line is None:
            continue
        use = next_use(schedule, line)
        if use is None:
            return index
        if use > farthest_use:
            farthest_index = index
            farthest_use = use
    if farthest_index is None:
        raise RuntimeError("no resident line to evict")
    return farthest_index


class OptSimulator:
    """Belady's MIN on one cache set.

    The simulator owns everything a run mutates: a cursor over the trace, its
    own copy of the reuse schedule and the cache set. The ``schedule`` passed
    in is left untouched, so one loaded trace can drive several runs.
    """

    def __init__(self, trace: Iterable[int], schedule: Dict[int, Iterable[int]],
                 associativity: int, max_capacity: int = MAX_CACHE_CAPACITY):
        self.associativity = validate_associativity(associativity, max_capacity)
        self.access_pattern = deque(trace)
        self.access_time_pattern = {line: deque(times) for line, times in schedule.items()}
        self.cache = CacheSet(self.associativity)
        self.counter = 0
        self.hits = 0

    @property
    def stats(self) -> SimulationStats:
        return SimulationStats(hits=self.hits, total=self.counter)

    def _drop_current_reference(self, line):
        times = self.access_time_pattern.get(line)
        if not times or times[0] != self.counter:
            raise ValueError(
                f"reuse schedule has no entry for line {line} at step {self.counter}")
        times.popleft()

    def step(self) -> StepEvent:
        """Simulate the next access of the trace."""
        line = self.access_pattern[0]
        self._drop_current_reference(line)

        evicted = None
        hit = line in self.cache
        if hit:
            self.hits += 1
        elif not self.cache.is_full():
            self.cache.insert(line)
        else:
            victim = select_victim(self.cache, self.access_time_pattern)
            evicted = self.cache.replace(victim, line)
            logger.debug("step %d: evicted line %s from slot %d for line %s",
                         self.counter, evicted, victim, line)

        self.access_pattern.popleft()
        event = StepEvent(index=self.counter, line=line, cache=self.cache.snapshot(),
                          hit=hit, evicted=evicted)
        self.counter += 1
        return event

    def steps(self) -> Iterator[StepEvent]:
        while self.access_pattern:
            yield self.step()

    def run(self, on_step=None) -> SimulationStats:
        for event in self.steps():
            if on_step is not None:
                on_step(event)
        stats = self.stats
        logger.debug("simulated %d accesses with associativity %d: %d hits",
                     stats.total, self.associativity, stats.hits)
        return stats


def beladys_min(cache_size, access_sequence):
    access_sequence = list(access_sequence)
    simulator = OptSimulator(access_sequence, build_schedule(access_sequence), cache_size)
    return simulator.run()
