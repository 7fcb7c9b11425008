import os
import re
from typing import List, NamedTuple, Sequence, Union

import numpy as np

try:
    import torch
except Exception as e:
    raise ImportError("This module requires PyTorch (torch). Install PyTorch and retry.") from e

from rlelife.utils.errors import FormatError
from rlelife.utils.logging import get_logger

ALIVE = True
DEAD = False

_TAG_CELLS = {"b": DEAD, "o": ALIVE}
_DIGITS = "0123456789"

_WIDTH_RE = re.compile(r"^\s*x\s*=\s*([^,]*)")
_HEIGHT_RE = re.compile(r"\by\s*=\s*([^,]*)")

PathLike = Union[str, "os.PathLike[str]"]
GridLike = Union[np.ndarray, "torch.Tensor", Sequence[Sequence[int]]]


class RlePattern(NamedTuple):
    """Body lines of an RLE file together with the declared bounding box."""
    lines: List[str]
    width: int
    height: int

    @property
    def body(self) -> str:
        return "".join(self.lines)


# ---------------------------
# Grid helpers
# ---------------------------
def to_grid(cells: GridLike) -> np.ndarray:
    """
    Copy any 2D cell container into a rectangular boolean grid.

    Accepts numpy arrays, torch tensors and nested sequences. Nested rows may
    be ragged; short rows are filled with dead cells on the right.
    """
    if isinstance(cells, torch.Tensor):
        cells = cells.detach().cpu().numpy()
    if isinstance(cells, np.ndarray):
        if cells.ndim == 3 and cells.shape[0] == 1:
            cells = cells[0]
        if cells.ndim == 2:
            return cells.astype(bool, copy=True)
        if cells.size == 0:
            return np.zeros((0, 0), dtype=bool)
        raise ValueError(f"Expected a 2D grid, got shape {cells.shape}")

    rows = [list(row) for row in cells]
    width = max((len(row) for row in rows), default=0)
    grid = np.zeros((len(rows), width), dtype=bool)
    for y, row in enumerate(rows):
        grid[y, :len(row)] = np.asarray(row, dtype=bool)
    return grid


# ---------------------------
# RLE decode
# ---------------------------
def read_pattern_text(path: PathLike) -> List[str]:
    """
    Read a pattern file and return its lines.

    Raises:
        OSError: the file is missing or unreadable; the path is in the message.
        FormatError: the file is not UTF-8 text.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except OSError as e:
        if e.errno is None:
            raise OSError(f"Could not read pattern file {path}: {e}") from e
        raise OSError(e.errno, f"Could not read pattern file: {e.strerror}", os.fspath(path)) from e
    except UnicodeDecodeError as e:
        raise FormatError(f"Pattern file {path} is not UTF-8 text") from e
    return text.splitlines()


def _header_int(match, field: str, line: str) -> int:
    if match is None:
        raise FormatError(f"Invalid RLE header {line!r}: {field} is not specified")
    raw = match.group(1).strip()
    try:
        value = int(raw)
    except ValueError:
        raise FormatError(f"Invalid RLE header {line!r}: {field} = {raw!r} is not an integer") from None
    if value <= 0:
        raise FormatError(f"Invalid RLE header {line!r}: {field} must be positive, got {value}")
    return value


def parse_rle_lines(lines: Sequence[str]) -> RlePattern:
    """
    Split raw pattern lines into header dimensions and body lines.

    Comment lines ('#...') and blank lines are skipped. The line starting
    with 'x' is the header: width follows 'x = ' up to the first comma and
    height follows 'y = ' up to the next comma. Anything after that (e.g.
    the rule) is ignored.

    Raises:
        FormatError: no body lines, missing header, or width/height not integers.
    """
    body = []
    width = height = None
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if stripped.startswith("x"):
            if width is not None:
                raise FormatError(f"Invalid RLE file. Duplicate header line {stripped!r}")
            width = _header_int(_WIDTH_RE.search(stripped), "width (x)", stripped)
            height = _header_int(_HEIGHT_RE.search(stripped), "height (y)", stripped)
            continue
        body.append(stripped)

    if width is None or height is None:
        raise FormatError("Invalid RLE file. Header line 'x = ..., y = ...' is not specified")
    if not body:
        raise FormatError("Invalid RLE file. Pattern lines are not specified")
    return RlePattern(body, width, height)


def parse_rle_file(path: PathLike) -> RlePattern:
    """Read an RLE file and return its body lines with the declared width and height."""
    return parse_rle_lines(read_pattern_text(path))


def rle_to_grid(pattern: str) -> np.ndarray:
    """
    Decompress an RLE token stream (no header) into a boolean grid.

    Run counts may span several digits and default to 1. A count in front
    of '$' ends that many rows. Parsing stops at '!'; whitespace is ignored.
    Rows ending early are filled with dead cells up to the widest row.

    Raises:
        FormatError: on any character other than digits, 'b', 'o', '$', '!'.
    """
    rows: List[List[bool]] = []
    row: List[bool] = []
    run_count = ""

    for pos, char in enumerate(pattern):
        if char in _DIGITS:
            run_count += char
        elif char in _TAG_CELLS:
            row.extend([_TAG_CELLS[char]] * max(int(run_count or 1), 1))
            run_count = ""
        elif char == "$":
            rows.append(row)
            rows.extend([] for _ in range(int(run_count or 1) - 1))
            row = []
            run_count = ""
        elif char == "!":
            rows.append(row)
            row = None
            break
        elif char.isspace():
            continue
        else:
            raise FormatError(f"Unexpected character {char!r} at offset {pos} in RLE pattern")

    # stream ended without '!'
    if row:
        rows.append(row)

    return to_grid(rows)


def decode(source: Union[PathLike, Sequence[str]]) -> np.ndarray:
    """
    Decode an RLE pattern into a boolean grid.

    Args:
        source: path to an .rle file, or the file's lines.

    Returns:
        np.ndarray of shape (H, W), dtype bool.
    """
    if isinstance(source, (str, os.PathLike)):
        pattern = parse_rle_file(source)
    else:
        pattern = parse_rle_lines(source)
    grid = rle_to_grid(pattern.body)
    get_logger().debug(
        f"[Decode] declared {pattern.width}x{pattern.height}, decoded {grid.shape[1]}x{grid.shape[0]}"
    )
    return grid


def decode_text(text: str) -> np.ndarray:
    """Decode RLE file contents given as a single string."""
    return decode(text.splitlines())


# ---------------------------
# RLE encode
# ---------------------------
def _row_runs(row: np.ndarray) -> List[tuple]:
    runs = []
    if row.size == 0:
        return runs
    cur = bool(row[0])
    cnt = 1
    for v in row[1:]:
        v = bool(v)
        if v == cur:
            cnt += 1
        else:
            runs.append((cnt, cur))
            cur = v
            cnt = 1
    # last run in row
    runs.append((cnt, cur))
    return runs


def grid_to_rle(grid: GridLike) -> str:
    """
    Compress a grid to an RLE body string.

    Runs are written as <count><tag> with the count omitted when it is 1.
    Rows are separated with '$' and the pattern is terminated with '!'.
    Dead cells at the end of the final row are dropped. A grid without rows
    encodes to '!'.
    """
    grid = to_grid(grid)
    H = grid.shape[0]

    rows_rle = []
    for y in range(H):
        runs = _row_runs(grid[y])
        if y == H - 1 and runs and runs[-1][1] == DEAD:
            runs.pop()
        rows_rle.append("".join(f"{cnt if cnt > 1 else ''}{'o' if alive else 'b'}" for cnt, alive in runs))

    return "$".join(rows_rle) + "!"


def rle_with_header(grid: GridLike, rule: str = None) -> str:
    """
    Encode a grid as a complete RLE file: 'x = W, y = H' header (plus
    ', rule = ...' if provided) followed by the body line.
    """
    grid = to_grid(grid)
    H, W = grid.shape
    header = f"x = {W}, y = {H}" + (f", rule = {rule}" if rule else "")
    return header + "\n" + grid_to_rle(grid)
