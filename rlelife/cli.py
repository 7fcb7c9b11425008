import argparse
import logging
import os
import sys
from typing import List, Optional

from rlelife.core.Board import Board
from rlelife.core.GOLEngine import GoLEngine
from rlelife.game import check_iterations, play
from rlelife.utils.errors import ArgumentError, RleLifeError
from rlelife.utils.logging import get_logger

DEFAULT_PATTERNS_DIR = os.environ.get("RLELIFE_PATTERNS_DIR", "patterns")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rlelife",
        description="Run Conway's Game of Life on an RLE pattern and print the result as RLE.",
    )
    parser.add_argument("pattern", nargs="?",
                        help="RLE file; a bare name is looked up in the patterns directory")
    parser.add_argument("iterations", nargs="?", help="number of generations to run")
    parser.add_argument("--patterns-dir", default=DEFAULT_PATTERNS_DIR,
                        help="directory holding pattern files (default: %(default)s)")
    parser.add_argument("--gif", metavar="FILE", help="also save the trajectory as an animated GIF")
    parser.add_argument("--fps", type=int, default=10, help="GIF frames per second")
    parser.add_argument("--header", action="store_true", help="prefix the output with an 'x = .., y = ..' header")
    parser.add_argument("--log-dir", help="write a debug log file to this directory")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug messages to the console")
    return parser


def resolve_pattern_path(pattern: str, patterns_dir: str) -> str:
    if os.path.isfile(pattern):
        return pattern
    return os.path.join(patterns_dir, pattern)


def parse_iterations(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ArgumentError(f"Number of game iterations must be an integer, got {raw!r}") from None
    return check_iterations(value)


def run(args: argparse.Namespace) -> str:
    path = resolve_pattern_path(args.pattern, args.patterns_dir)
    iterations = parse_iterations(args.iterations)

    if not args.gif and not args.header:
        return play(path, iterations)

    engine = GoLEngine()
    board = Board.from_rle(path)
    if args.gif:
        final, trajectory = engine.simulate(board, steps=iterations, return_trajectory=True)
        engine.trajectory_to_gif(trajectory, args.gif, fps=args.fps)
        get_logger().info(f"Saved {len(trajectory)} generations to {args.gif}")
    else:
        final = engine.simulate(board, steps=iterations)
    return final.to_rle_with_header() if args.header else final.to_rle()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logger = get_logger(log_dir=args.log_dir, level=logging.DEBUG if args.verbose else logging.INFO)

    if not args.pattern:
        print("Please provide the name of the pattern file as the first argument. "
              f"To add new patterns, place the RLE file in the {args.patterns_dir} directory")
        return 0
    if args.iterations is None:
        print("Please provide the number of iterations as the second argument")
        return 0

    try:
        result = run(args)
    except (RleLifeError, OSError) as e:
        logger.error(str(e))
        return 1

    print(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
