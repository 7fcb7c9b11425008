import numbers
import os
from typing import Sequence, Union

from rlelife.core.Board import Board
from rlelife.core.GOLEngine import GoLEngine
from rlelife.utils.errors import ArgumentError
from rlelife.utils.logging import get_logger


def check_iterations(iterations) -> int:
    """
    Validate a generation count.

    Raises:
        ArgumentError: if iterations is missing, not an integer or negative.
    """
    if iterations is None:
        raise ArgumentError("Number of game iterations must be provided")
    if isinstance(iterations, bool) or not isinstance(iterations, numbers.Integral):
        raise ArgumentError(f"Number of game iterations must be an integer, got {iterations!r}")
    if iterations < 0:
        raise ArgumentError(f"Iterations must be 0 or greater, got {iterations}")
    return int(iterations)


def play(source: Union[str, "os.PathLike[str]", Sequence[str]], iterations: int = None,
         engine: GoLEngine = None) -> str:
    """
    Returns the pattern in its final form in RLE format.

    Args:
        source: path to an RLE pattern file, or the lines of one. A str is
            always taken as a path; pass pattern text as
            `text.splitlines()` (or decode it with `decode_text`).
        iterations: number of generations to run; 0 just re-encodes the pattern.
        engine: optional engine (e.g. with hooks); a CPU engine by default.

    Returns:
        RLE body of the final generation, cropped to its live bounding box.

    Raises:
        ArgumentError: iterations missing or negative.
        FormatError: malformed pattern.
        OSError: pattern file unreadable.
    """
    iterations = check_iterations(iterations)
    board = Board.from_rle(source)

    engine = engine or GoLEngine()
    final = engine.simulate(board, steps=iterations)

    get_logger().debug(f"[Play] {iterations} iterations: {board.shape} -> {final.shape}")
    return final.to_rle()
