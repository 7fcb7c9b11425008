from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np
from PIL import Image, ImageDraw

from rlelife.core.Board import Board
from rlelife.utils.encodings import GridLike, to_grid
from rlelife.utils.errors import ArgumentError, ExportError
from rlelife.utils.logging import get_logger

"""
GOLEngine.py

Game of Life engine on finite, self-cropping boards.

Each generation is computed on a board padded with one dead cell on every
side and then cropped back to the live bounding box, so patterns can grow
without a fixed canvas. Neighbour counts use a 3x3 convolution with zero
padding: cells outside the grid are dead, edges never wrap.

Requirements:
    - torch (PyTorch)
    - numpy
    - Pillow (GIF export only)
"""

try:
    import torch
    import torch.nn.functional as F
except Exception as e:
    raise ImportError("This module requires PyTorch (torch). Install PyTorch and retry.") from e


# ---------------------------
# GoLEngine
# ---------------------------
class GoLEngine:
    """
    Game of Life engine for a single finite board.

    Usage:
        engine = GoLEngine(device='cpu')
        board = Board.from_rle('patterns/glider.rle')
        final = engine.simulate(board, steps=4)
        print(final.to_rle())
    """

    NEIGH_KERNEL = torch.tensor([[1, 1, 1],
                                 [1, 0, 1],
                                 [1, 1, 1]], dtype=torch.float32)

    def __init__(self,
                 device: Union[str, torch.device] = "cpu",
                 pre_train_hooks: Optional[List[Callable]] = None,
                 post_train_hooks: Optional[List[Callable]] = None,
                 pre_step_hooks: Optional[List[Callable]] = None,
                 post_step_hooks: Optional[List[Callable]] = None,
                 cancel_condition: Optional[Callable[[Board, int], bool]] = None):
        """
        Initialize the engine with optional hooks.

        Args:
            device: 'cpu', 'cuda', or torch.device for the neighbour counts.
            pre_train_hooks: List of callables hook(board) executed before simulation starts.
            post_train_hooks: List of callables hook(board) executed after simulation ends.
            pre_step_hooks: List of callables hook(board, step_idx) executed before each step.
            post_step_hooks: List of callables hook(board, step_idx) executed after each step.
            cancel_condition: Callable(board, step_idx) -> bool, stop simulation if True.
        """
        self.device = torch.device(device)
        self.kernel = GoLEngine.NEIGH_KERNEL.view(1, 1, 3, 3).to(self.device)

        self.pre_train_hooks = pre_train_hooks or []
        self.post_train_hooks = post_train_hooks or []
        self.pre_step_hooks = pre_step_hooks or []
        self.post_step_hooks = post_step_hooks or []
        self.cancel_condition = cancel_condition

    @staticmethod
    def step_states(states: torch.Tensor, kernel: torch.Tensor) -> torch.Tensor:
        """
        Single Game of Life step on a batch of boards.

        Args:
            states: Bool tensor of shape (B,H,W).
            kernel: (1,1,3,3) neighbourhood kernel.

        Returns:
            Bool tensor of the same shape with the next generation.
        """
        x = states.float().unsqueeze(1)

        # out-of-bounds cells count as dead
        x_p = F.pad(x, (1, 1, 1, 1), mode='constant', value=0.0)

        nbh = F.conv2d(x_p, kernel).squeeze(1)
        survive = states & ((nbh == 2) | (nbh == 3))
        born = (~states) & (nbh == 3)
        return survive | born

    @torch.no_grad()
    def step(self, grid: GridLike) -> np.ndarray:
        """
        Apply the Game of Life rules once.

        All cells are updated from the same snapshot. The output has the
        shape of the input; padding before and cropping after is up to the
        caller. Grids with no rows or no columns come back unchanged.

        Args:
            grid: 2D cell grid (numpy array, tensor or nested lists).

        Returns:
            np.ndarray of dtype bool with the next generation.
        """
        grid = to_grid(grid)
        H, W = grid.shape
        if H == 0 or W == 0:
            return grid

        states = torch.from_numpy(grid).to(self.device).unsqueeze(0)
        out = GoLEngine.step_states(states, self.kernel)
        return out[0].cpu().numpy()

    def advance(self, board: Board) -> Board:
        """One generation on a Board: pad, step, crop."""
        padded = board.pad()
        evolved = Board(self.step(padded.grid), padded.origin, meta=padded.meta)
        return evolved.crop()

    def simulate(self,
                 board: Union[Board, GridLike],
                 steps: int = 1,
                 return_trajectory: bool = False
                 ) -> Union[Board, Tuple[Board, List[Board]]]:
        """
        Run `steps` generations of pad -> step -> crop.

        Args:
            board: Board or 2D grid with the initial generation.
            steps: Number of generations to compute.
            return_trajectory: If True, also return every generation
                (the initial board included) as a list of Boards.

        Returns:
            The final Board, or (final Board, trajectory).

        Once the board dies out the remaining steps are skipped; an empty
        board stays empty.
        """
        logger = get_logger()
        b = board.clone() if isinstance(board, Board) else Board(board)
        trajectory = [b] if return_trajectory else None

        for hook in self.pre_train_hooks:
            hook(b)

        for t in range(steps):
            if self.cancel_condition and self.cancel_condition(b, t):
                logger.debug(f"[Engine] Cancelled before step {t}")
                break

            for hook in self.pre_step_hooks:
                hook(b, t)

            b = self.advance(b)

            for hook in self.post_step_hooks:
                hook(b, t)

            if trajectory is not None:
                trajectory.append(b)

            logger.debug(f"[Engine] Step {t + 1}/{steps}: shape={b.shape}, population={b.population()}")
            if b.is_empty():
                logger.debug(f"[Engine] Pattern died out after {t + 1} steps")
                break

        for hook in self.post_train_hooks:
            hook(b)

        if trajectory is not None:
            return b, trajectory
        return b

    # ---------------------------
    # Visualization and saving
    # ---------------------------
    @staticmethod
    def trajectory_frames(trajectory: Sequence[Board]) -> List[np.ndarray]:
        """
        Place every board of a trajectory on one common canvas.

        The canvas is the union of the boards' absolute extents, so a moving
        pattern moves across the frames instead of being re-centred.

        Returns:
            List of bool arrays, all of the same shape.
        """
        if len(trajectory) == 0:
            raise ValueError("Trajectory is empty")

        extents = [b.extent() for b in trajectory if not b.is_empty()]
        if not extents:
            return [np.zeros((1, 1), dtype=bool) for _ in trajectory]
        top = min(e[0] for e in extents)
        left = min(e[1] for e in extents)
        bottom = max(e[2] for e in extents)
        right = max(e[3] for e in extents)

        frames = []
        for b in trajectory:
            canvas = np.zeros((bottom - top, right - left), dtype=bool)
            if not b.is_empty():
                y, x = b.origin[0] - top, b.origin[1] - left
                canvas[y:y + b.H(), x:x + b.W()] = b.grid
            frames.append(canvas)
        return frames

    def trajectory_to_gif(self,
                          trajectory: Sequence[Board],
                          filepath: str,
                          fps: int = 10,
                          scale: int = 8,
                          invert: bool = True,
                          show_progress: bool = True):
        """
        Save a trajectory of boards to an animated GIF.

        Args:
            trajectory: Boards as returned by simulate(..., return_trajectory=True).
            filepath: Output file path for the GIF.
            fps: Frames per second for GIF playback.
            scale: Upscaling factor for visibility.
            invert: If True, alive cells are drawn black on white.
            show_progress: If True, draws a small progress bar at the bottom of each frame.

        Raises:
            ArgumentError: fps is not a positive number.
            ExportError: Pillow cannot write the file (e.g. unknown extension).
        """
        if fps is None or fps <= 0:
            raise ArgumentError(f"GIF frames per second must be positive, got {fps}")

        frames_arr = self.trajectory_frames(trajectory)
        total_frames = len(frames_arr)

        frames = []
        for idx, arr in enumerate(frames_arr):
            if invert:
                arr = ~arr
            # scale up for visibility
            if scale != 1:
                arr = np.kron(arr, np.ones((scale, scale), dtype=bool))

            arr_uint8 = arr.astype(np.uint8) * 255
            img = Image.fromarray(arr_uint8).convert("RGB")

            if show_progress:
                draw = ImageDraw.Draw(img)
                bar_height = max(1, img.height // 40)
                progress = int(img.width * (idx + 1) / total_frames)
                draw.rectangle([0, img.height - bar_height, progress, img.height], fill=(255, 0, 0))

            frames.append(img)

        # duration per frame in ms
        duration_ms = int(1000 / fps)
        try:
            frames[0].save(filepath,
                           save_all=True,
                           append_images=frames[1:],
                           duration=duration_ms,
                           loop=0,
                           optimize=False,
                           disposal=2)
        except ValueError as e:
            raise ExportError(f"Could not save trajectory to {filepath}: {e}") from e
        get_logger().debug(f"[Engine] Saved {total_frames} frames to {filepath}")


def evolve_once(grid: GridLike, device: Union[str, "torch.device"] = "cpu") -> np.ndarray:
    """Next generation of `grid` with the same shape (see GoLEngine.step)."""
    return GoLEngine(device=device).step(grid)
