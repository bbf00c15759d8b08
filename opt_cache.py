import argparse
import logging
import sys

from belady import MAX_CACHE_CAPACITY, OptSimulator, validate_associativity
from errors import ConfigurationError, FileAccessError, ParseError
from get_lines import load_access_pattern
from report import format_schedule, format_step, format_summary, write_events_csv

logger = logging.getLogger('opt_cache')

ILLEGAL_SIZE_MESSAGE = "Illegal Cache Set Size"


def positive_int(text):
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {text}")
    return value


def non_negative_int(text):
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {text}")
    return value


def build_parser():
    parser = argparse.ArgumentParser(
        prog='opt-cache',
        description="Simulate one cache set under Belady's optimal (OPT) replacement.")
    parser.add_argument('trace', help='trace file, one cache line number per line (or a CSV with a CacheLine header)')
    parser.add_argument('associativity', help='number of lines in the cache set, 1..max capacity')
    parser.add_argument('--max-capacity', type=positive_int, default=MAX_CACHE_CAPACITY,
                        help='largest accepted associativity (default: %(default)s)')
    parser.add_argument('--line-size', type=positive_int, default=None,
                        help='read the trace as byte addresses and map them to lines of this size')
    parser.add_argument('--limit', type=non_negative_int, default=None,
                        help='simulate only the first N accesses')
    parser.add_argument('--show-schedule', action='store_true',
                        help='print the reuse time stamps of every line before simulating')
    parser.add_argument('--events-csv', metavar='PATH', default=None,
                        help='also write every simulated access to a CSV file')
    parser.add_argument('-q', '--quiet', action='store_true',
                        help='print only the hit ratio summary')
    parser.add_argument('-v', '--verbose', action='store_true', help='debug logging')
    return parser


def parse_associativity(text, max_capacity=MAX_CACHE_CAPACITY):
    try:
        value = int(text)
    except ValueError as e:
        raise ConfigurationError(f"associativity must be an integer, got {text!r}") from e
    return validate_associativity(value, max_capacity)


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    try:
        associativity = parse_associativity(args.associativity, args.max_capacity)
    except ConfigurationError as e:
        logger.error("%s", e)
        print(ILLEGAL_SIZE_MESSAGE)
        return 1

    try:
        trace, schedule = load_access_pattern(args.trace, line_size=args.line_size, limit=args.limit)
    except (FileAccessError, ParseError) as e:
        logger.error("%s", e)
        return 1

    simulator = OptSimulator(trace, schedule, associativity, args.max_capacity)
    if args.show_schedule:
        print(format_schedule(schedule))
        print()

    events = [] if args.events_csv else None

    def on_step(event):
        if not args.quiet:
            print(format_step(event))
        if events is not None:
            events.append(event)

    stats = simulator.run(on_step)
    print()
    print(format_summary(stats))

    if args.events_csv:
        try:
            write_events_csv(events, args.events_csv)
        except OSError as e:
            logger.error("cannot write %s: %s", args.events_csv, e)
            return 1
        logger.info("wrote %d step events to %s", len(events), args.events_csv)
    return 0


if __name__ == "__main__":
    sys.exit(main())
