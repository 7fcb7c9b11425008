from typing import Dict, Optional, Sequence, Tuple, Union
import os

import numpy as np
try:
    import torch
except Exception as e:
    raise ImportError("This module requires PyTorch (torch). Install PyTorch and retry.") from e

from rlelife.utils.encodings import GridLike, decode, grid_to_rle, rle_with_header, to_grid


# ---------------------------
# Grid normalization
# ---------------------------
def _live_bounds(grid: np.ndarray) -> Optional[Tuple[int, int, int, int]]:
    """Return (ymin, ymax, xmin, xmax) of the alive cells, or None for a dead grid."""
    nonzero = np.argwhere(grid)
    if nonzero.size == 0:
        return None
    ymin, xmin = nonzero.min(axis=0).tolist()
    ymax, xmax = nonzero.max(axis=0).tolist()
    return ymin, ymax, xmin, xmax


def pad_grid(grid: GridLike) -> np.ndarray:
    """
    Surround a grid with a one-cell dead border.

    Returns a new (H+2, W+2) grid; the input is never modified.
    """
    return np.pad(to_grid(grid), 1, mode="constant", constant_values=False)


def crop_grid(grid: GridLike) -> np.ndarray:
    """
    Restrict a grid to the minimal bounding box of its alive cells.

    Dead rows above and below the live region and dead columns left and
    right of it are removed from every row alike, so the result stays
    rectangular. Dead rows and columns inside the box are kept. A fully
    dead grid crops to shape (0, 0).
    """
    grid = to_grid(grid)
    bounds = _live_bounds(grid)
    if bounds is None:
        return np.zeros((0, 0), dtype=bool)
    ymin, ymax, xmin, xmax = bounds
    return grid[ymin:ymax + 1, xmin:xmax + 1].copy()


def crop_offset(grid: GridLike) -> Tuple[int, int]:
    """Top-left corner (row, col) of the live bounding box; (0, 0) for a dead grid."""
    bounds = _live_bounds(to_grid(grid))
    if bounds is None:
        return 0, 0
    return bounds[0], bounds[2]


# ---------------------------
# Board wrapper
# ---------------------------
class Board:
    """
    Lightweight wrapper around a single boolean grid.

    The grid is a numpy array of shape (H, W), dtype bool. `origin` is the
    absolute (row, col) position of grid[0, 0] on the infinite plane; pad()
    and crop() keep it in sync so successive generations can be laid on top
    of each other.
    """

    def __init__(self,
                 grid: GridLike,
                 origin: Tuple[int, int] = (0, 0),
                 meta: Optional[Dict] = None):
        self._grid = to_grid(grid)
        self.origin = (int(origin[0]), int(origin[1]))
        self.meta = meta or {}

    @property
    def grid(self) -> np.ndarray:
        return self._grid

    @property
    def tensor(self) -> torch.Tensor:
        """Grid as a (1, H, W) bool tensor."""
        return torch.from_numpy(self._grid.copy()).unsqueeze(0)

    @property
    def shape(self) -> Tuple[int, int]:
        return tuple(self._grid.shape)

    def H(self) -> int:
        return self._grid.shape[0]

    def W(self) -> int:
        return self._grid.shape[1]

    def population(self) -> int:
        return int(self._grid.sum())

    def is_empty(self) -> bool:
        return not self._grid.any()

    def extent(self) -> Tuple[int, int, int, int]:
        """Absolute (top, left, bottom, right) of the grid, bottom/right exclusive."""
        top, left = self.origin
        return top, left, top + self.H(), left + self.W()

    def clone(self) -> "Board":
        """
        Return a deep copy of the Board.

        Safeguards:
            - Copies the grid and metadata to avoid side effects.
        """
        return Board(self._grid.copy(), self.origin, meta=self.meta.copy())

    def pad(self) -> "Board":
        """Return a new Board with a one-cell dead border; origin moves up-left by one."""
        top, left = self.origin
        return Board(pad_grid(self._grid), (top - 1, left - 1), meta=self.meta.copy())

    def crop(self) -> "Board":
        """Return a new Board cropped to its live bounding box; origin follows the box."""
        dy, dx = crop_offset(self._grid)
        top, left = self.origin
        return Board(crop_grid(self._grid), (top + dy, left + dx), meta=self.meta.copy())

    def to_rle(self) -> str:
        return grid_to_rle(self._grid)

    def to_rle_with_header(self, rule: str = None) -> str:
        return rle_with_header(self._grid, rule=rule)

    @classmethod
    def from_rle(cls, source: Union[str, "os.PathLike[str]", Sequence[str]], meta: Optional[Dict] = None) -> "Board":
        """
        Build a Board from an RLE file path or the lines of an RLE file.

        Raises:
            OSError: unreadable path.
            FormatError: malformed pattern.
        """
        return cls(decode(source), meta=meta)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.origin == other.origin and np.array_equal(self._grid, other._grid)

    def __repr__(self) -> str:
        return f"Board(shape={self.shape}, origin={self.origin}, population={self.population()})"
