import numpy as np
import pytest
from PIL import Image

from rlelife.core.Board import Board, crop_grid, pad_grid
from rlelife.core.GOLEngine import GoLEngine, evolve_once
from rlelife.utils.encodings import grid_to_rle, rle_to_grid
from rlelife.utils.errors import ArgumentError, ExportError


@pytest.fixture
def engine():
    return GoLEngine(device="cpu")


def test_step_padded_glider(engine, glider_grid):
    out = engine.step(pad_grid(glider_grid))
    assert out.tolist() == [[0, 0, 0, 0, 0],
                            [0, 0, 0, 0, 0],
                            [0, 1, 0, 1, 0],
                            [0, 0, 1, 1, 0],
                            [0, 0, 1, 0, 0]]
    assert grid_to_rle(crop_grid(out)) == "obo$b2o$bo!"


def test_step_keeps_shape(engine):
    grid = np.zeros((4, 7), dtype=bool)
    grid[1, 1:4] = True
    assert engine.step(grid).shape == (4, 7)


def test_step_does_not_mutate_input(engine, glider_grid):
    padded = pad_grid(glider_grid)
    before = padded.copy()
    engine.step(padded)
    assert np.array_equal(padded, before)


def test_step_is_deterministic(engine, glider_grid):
    padded = pad_grid(glider_grid)
    assert np.array_equal(engine.step(padded), engine.step(padded))


def test_edges_do_not_wrap(engine):
    corners = [[1, 0, 1],
               [0, 0, 0],
               [1, 0, 1]]
    assert not engine.step(corners).any()
    assert engine.step([[1, 1, 1]]).tolist() == [[0, 1, 0]]


@pytest.mark.parametrize("grid, expected", [
    # lonely cell dies
    ([[0, 0, 0], [0, 1, 0], [0, 0, 0]], [[0, 0, 0], [0, 0, 0], [0, 0, 0]]),
    # overcrowded centre dies, corners are born
    ([[0, 1, 0], [1, 1, 1], [0, 1, 0]], [[1, 1, 1], [1, 0, 1], [1, 1, 1]]),
    # block survives
    ([[1, 1], [1, 1]], [[1, 1], [1, 1]]),
])
def test_step_rules(engine, grid, expected):
    assert engine.step(grid).tolist() == expected


@pytest.mark.parametrize("shape", [(0, 0), (0, 4), (3, 0)])
def test_step_degenerate_grid(engine, shape):
    out = engine.step(np.zeros(shape, dtype=bool))
    assert out.shape == shape


def test_evolve_once_function(glider_grid):
    assert evolve_once(pad_grid(glider_grid)).sum() == 5


def test_simulate_blinker_oscillates(engine):
    board = Board(rle_to_grid("3o!"))
    one = engine.simulate(board, steps=1)
    two = engine.simulate(board, steps=2)
    assert one.to_rle() == "o$o$o!"
    assert two.to_rle() == "3o!"
    assert one.origin == (-1, 1)
    assert two.origin == (0, 0)


def test_simulate_glider_translates(engine, glider_grid):
    final = engine.simulate(Board(glider_grid), steps=4)
    assert np.array_equal(final.grid, glider_grid)
    assert final.origin == (1, 1)


def test_simulate_zero_steps_returns_copy(engine, glider_grid):
    board = Board(glider_grid)
    final = engine.simulate(board, steps=0)
    assert final == board
    assert final is not board


def test_simulate_extinction(engine):
    final, trajectory = engine.simulate(Board([[1]]), steps=5, return_trajectory=True)
    assert final.shape == (0, 0)
    assert final.to_rle() == "!"
    assert len(trajectory) == 2


def test_simulate_hooks_and_cancel(glider_grid):
    seen = []
    started = []
    engine = GoLEngine(
        pre_train_hooks=[lambda b: started.append(b.population())],
        post_step_hooks=[lambda b, t: seen.append((t, b.population()))],
        cancel_condition=lambda b, t: t == 3,
    )
    final, trajectory = engine.simulate(Board(glider_grid), steps=10, return_trajectory=True)
    assert started == [5]
    assert seen == [(0, 5), (1, 5), (2, 5)]
    assert len(trajectory) == 4
    assert final.population() == 5


def test_trajectory_frames_share_canvas(engine, glider_grid):
    _, trajectory = engine.simulate(Board(glider_grid), steps=4, return_trajectory=True)
    frames = GoLEngine.trajectory_frames(trajectory)
    assert len(frames) == 5
    assert all(f.shape == (4, 4) for f in frames)
    assert np.array_equal(frames[0][:3, :3], glider_grid)
    assert np.array_equal(frames[4][1:, 1:], glider_grid)


def test_trajectory_frames_empty():
    with pytest.raises(ValueError):
        GoLEngine.trajectory_frames([])


def test_trajectory_to_gif(engine, glider_grid, tmp_path):
    _, trajectory = engine.simulate(Board(glider_grid), steps=4, return_trajectory=True)
    out = tmp_path / "glider.gif"
    engine.trajectory_to_gif(trajectory, str(out), fps=5, scale=8)
    with Image.open(out) as img:
        assert img.size == (32, 32)
        assert img.n_frames == 5


@pytest.mark.parametrize("fps", [0, -5])
def test_trajectory_to_gif_rejects_bad_fps(engine, glider_grid, tmp_path, fps):
    _, trajectory = engine.simulate(Board(glider_grid), steps=1, return_trajectory=True)
    with pytest.raises(ArgumentError):
        engine.trajectory_to_gif(trajectory, str(tmp_path / "glider.gif"), fps=fps)


def test_trajectory_to_gif_unknown_extension(engine, glider_grid, tmp_path):
    _, trajectory = engine.simulate(Board(glider_grid), steps=1, return_trajectory=True)
    with pytest.raises(ExportError):
        engine.trajectory_to_gif(trajectory, str(tmp_path / "glider"))
