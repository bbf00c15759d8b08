import pandas as pd

EMPTY_SLOT_MARK = '-'
HIT_MARK = '(H)'
MISS_MARK = '(M)'
EVENT_COLUMNS = ['index', 'line', 'hit', 'evicted', 'cache']


def format_cache_set(slots, empty=EMPTY_SLOT_MARK, sep='\t'):
    return sep.join(empty if line is None else str(line) for line in slots)


def format_step(event):
    """One line per access: index, line, slots after the access, hit/miss."""
    mark = HIT_MARK if event.hit else MISS_MARK
    return f"{event.index})\t({event.line})\t{format_cache_set(event.cache)}\t{mark}"


def format_summary(stats):
    return f"Cache Hit Ratio: {stats.hits}/{stats.total} = {stats.hit_ratio:.2%}"


def format_schedule(schedule):
    lines = [f"{line}: " + ' '.join(str(t) for t in times)
             for line, times in schedule.items()]
    return '\n'.join(lines)


def events_to_frame(events):
    rows = [
        {
            'index': e.index,
            'line': e.line,
            'hit': e.hit,
            'evicted': e.evicted,
            'cache': format_cache_set(e.cache, sep=' '),
        }
        for e in events
    ]
    df = pd.DataFrame(rows, columns=EVENT_COLUMNS)
    # evicted is empty on most steps; keep it integral instead of float
    df['evicted'] = df['evicted'].astype('Int64')
    return df


def write_events_csv(events, path):
    df = events_to_frame(events)
    df.to_csv(path, index=False)
    return df
