import logging
from collections import defaultdict, deque

import numpy as np
import pandas as pd

from errors import ConfigurationError, FileAccessError, ParseError

logger = logging.getLogger(__name__)

CACHE_LINE_COLUMN = 'CacheLine'
LINE_NUMBER_PATTERN = r'[+-]?\d+'


def address_to_cacheline(address, line_size=64):
    return (address // line_size)


def _read_lines(file_path):
    try:
        with open(file_path, 'r', encoding='utf-8') as file:
            lines = file.read().split('\n')
    except (OSError, UnicodeDecodeError) as e:
        raise FileAccessError(f"cannot read trace {file_path}: {e}") from e
    # a final newline ends the last entry, it does not start a new one
    if lines[-1] == '':
        lines.pop()
    return lines


def _read_csv_entries(file_path):
    try:
        df = pd.read_csv(file_path, dtype=str, keep_default_na=False,
                         skip_blank_lines=False, encoding='utf-8')
    except pd.errors.EmptyDataError:
        return pd.Series([], dtype=object)
    except pd.errors.ParserError as e:
        raise ParseError(file_path, None, str(e)) from e
    except (OSError, UnicodeDecodeError) as e:
        raise FileAccessError(f"cannot read trace {file_path}: {e}") from e
    return df[CACHE_LINE_COLUMN].astype(object)


def read_line_numbers(file_path):
    """Read the raw integers of a trace file, in file order.

    A trace holds one integer per line. A file whose first line is the
    ``CacheLine`` header is read as a CSV and its ``CacheLine`` column is
    used, whatever the file is named. Every entry must be an integer. A
    malformed or blank entry raises ParseError; entries are never dropped.
    """
    lines = _read_lines(file_path)
    if lines and lines[0].strip() == CACHE_LINE_COLUMN:
        entries, first_lineno = _read_csv_entries(file_path), 2
    else:
        entries, first_lineno = pd.Series(lines, dtype=object), 1

    if entries.empty:
        return []

    entries = entries.fillna('')
    stripped = entries.str.strip()
    valid = stripped.str.fullmatch(LINE_NUMBER_PATTERN, na=False).to_numpy(dtype=bool)
    bad_rows = np.flatnonzero(~valid)
    if len(bad_rows):
        row = int(bad_rows[0])
        raise ParseError(file_path, row + first_lineno, entries.iloc[row])

    return [int(value) for value in stripped]


def build_schedule(trace):
    """Map each line to the ascending queue of positions it is accessed at."""
    schedule = defaultdict(deque)
    for i, v in enumerate(trace):
        schedule[v].append(i)
    return dict(schedule)


def load_access_pattern(file_path, line_size=None, limit=None):
    """Load a trace and its reuse schedule.

    Returns ``(trace, schedule)`` where ``trace`` is a tuple of line numbers
    and ``schedule`` maps every line to a deque of the positions at which it
    occurs. With ``line_size`` the file is read as byte addresses and mapped to
    cache lines; with ``limit`` only the first ``limit`` accesses are kept.
    """
    if line_size is not None and line_size < 1:
        raise ConfigurationError(f"line size must be positive, got {line_size}")
    if limit is not None and limit < 0:
        raise ConfigurationError(f"limit must not be negative, got {limit}")

    values = read_line_numbers(file_path)
    if limit is not None:
        values = values[:limit]
    if line_size is not None:
        values = [address_to_cacheline(v, line_size) for v in values]

    trace = tuple(values)
    schedule = build_schedule(trace)
    logger.debug("loaded %d accesses to %d distinct lines from %s",
                 len(trace), len(schedule), file_path)
    return trace, schedule
