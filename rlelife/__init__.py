"""Conway's Game of Life on RLE patterns: decode, evolve, crop and re-encode."""

from rlelife.core.Board import Board, crop_grid, pad_grid
from rlelife.core.GOLEngine import GoLEngine, evolve_once
from rlelife.game import play
from rlelife.utils.encodings import (ALIVE, DEAD, RlePattern, decode, decode_text, grid_to_rle,
                                     parse_rle_file, parse_rle_lines, read_pattern_text, rle_to_grid)
from rlelife.utils.errors import ArgumentError, ExportError, FormatError, RleLifeError

pad = pad_grid
crop = crop_grid
encode = grid_to_rle

__all__ = [
    "ALIVE", "DEAD", "ArgumentError", "Board", "ExportError", "FormatError", "GoLEngine", "RleLifeError", "RlePattern",
    "crop", "crop_grid", "decode", "decode_text", "encode", "evolve_once", "grid_to_rle", "pad", "pad_grid",
    "parse_rle_file", "parse_rle_lines", "play", "read_pattern_text", "rle_to_grid",
]
