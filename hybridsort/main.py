import logging
import random
import sys
import time
from argparse import ArgumentParser, ArgumentTypeError

from hybridsort.bench import GENERATORS, benchmark
from hybridsort.heapsort import PARALLEL_THRESHOLD
from hybridsort.introsort import INSERTION_THRESHOLD, is_sorted, sort
from hybridsort.numbers_io import NumberFormatError, read_numbers, write_numbers

logger = logging.getLogger("hybridsort")


def positive_int(text):
    value = int(text)
    if value <= 0:
        raise ArgumentTypeError(f"must be greater than 0: {value}")
    return value


def sort_file(args):
    numbers = read_numbers(args.input)

    start = time.perf_counter()
    sort(
        numbers,
        insertion_threshold=args.insertion_threshold,
        parallel_threshold=args.parallel_threshold,
        max_workers=args.max_workers,
        parallel=not args.sequential,
    )
    elapsed = time.perf_counter() - start

    write_numbers(args.output, numbers)

    logger.info("Sorted %d numbers in %.6fs.", len(numbers), elapsed)
    if is_sorted(numbers):
        logger.info("The numbers are sorted correctly.")
        return 0
    logger.error("The numbers are not sorted correctly.")
    return 1


def generate_file(args):
    rng = random.Random(args.seed)
    write_numbers(args.output, (rng.randint(args.low, args.high) for _ in range(args.count)))
    logger.info("Wrote %d numbers to %s.", args.count, args.output)
    return 0


def bench(args):
    benchmark(
        args.sizes,
        reps=args.reps,
        workers=args.workers,
        plot_dir=args.plot_dir,
        shapes=args.shapes,
    )
    return 0


def build_parser():
    parser = ArgumentParser(prog="hybridsort")
    parser.description = "Sort integer files with a parallel-fallback introsort, or benchmark it"
    parser.add_argument("-v", "--verbose", dest="level", action="store_const",
                        const=logging.DEBUG, default=logging.INFO, help="log debug messages")
    parser.add_argument("-q", "--quiet", dest="level", action="store_const",
                        const=logging.WARNING, help="log warnings and errors only")
    commands = parser.add_subparsers(dest="command", required=True)

    p = commands.add_parser("sort", help="sort a CSV file of integers")
    p.add_argument("-i", "--input", default="in.csv", help="input filename")
    p.add_argument("-o", "--output", default="out.csv", help="output filename")
    p.add_argument("--insertion-threshold", type=int, default=INSERTION_THRESHOLD,
                   help="largest index span sorted by insertion sort")
    p.add_argument("--parallel-threshold", type=int, default=PARALLEL_THRESHOLD,
                   help="largest heap sifted without spawning tasks")
    p.add_argument("--max-workers", type=positive_int, default=None,
                   help="threads used by the heap sort fallback")
    p.add_argument("--sequential", action="store_true",
                   help="use the sequential heap sort fallback")
    p.set_defaults(func=sort_file)

    p = commands.add_parser("generate", help="write a CSV file of random integers")
    p.add_argument("-o", "--output", default="in.csv", help="output filename")
    p.add_argument("-n", "--count", type=int, default=1_000_000, help="how many integers")
    p.add_argument("--low", type=int, default=-1_000_000_000)
    p.add_argument("--high", type=int, default=1_000_000_000)
    p.add_argument("--seed", type=int, default=None)
    p.set_defaults(func=generate_file)

    p = commands.add_parser("bench", help="compare introsort against baselines")
    p.add_argument("--sizes", type=int, nargs="+",
                   default=list(range(1, 200_000, 20_000)), help="array sizes")
    p.add_argument("--shapes", nargs="+", choices=list(GENERATORS), default=None,
                   help="input shapes (default: all)")
    p.add_argument("--reps", type=int, default=3, help="runs per measurement")
    p.add_argument("--workers", type=positive_int, default=None, help="benchmark processes")
    p.add_argument("--plot-dir", default=None,
                   help="save plots here instead of showing them")
    p.set_defaults(func=bench)

    return parser


def cli(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "generate" and args.low > args.high:
        parser.error(f"--low {args.low} is greater than --high {args.high}")
    logging.basicConfig(level=args.level, format="%(levelname)s - %(message)s")

    try:
        return args.func(args)
    except (OSError, NumberFormatError) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(cli())
