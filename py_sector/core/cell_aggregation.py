"""Aggregation of deposit fields into per-hex intensities."""

import numpy as np

from .trail_simulation import DepositField


def block_indices(extent: int, n_blocks: int) -> np.ndarray:
    """
    Map each deposit coordinate along one axis to its hex block.

    Blocks are ``extent / n_blocks`` wide (not necessarily integral), and a
    coordinate belongs to block ``floor(coord / block_size)``.
    """
    block_size = extent / n_blocks
    indices = np.floor(np.arange(extent) / block_size).astype(np.intp)
    return np.minimum(indices, n_blocks - 1)


def accumulate_to_cells(field: DepositField, n_cols: int, n_rows: int) -> np.ndarray:
    """
    Sum the deposit field into one intensity per hex cell.

    Every deposit cell contributes to exactly one hex cell, so the total
    trail is conserved.

    Args:
        field: Deposit field from a simulation run
        n_cols: Hex columns covered by the field
        n_rows: Hex rows covered by the field

    Returns:
        Array of shape (n_rows, n_cols) with float64 intensities
    """
    row_index = block_indices(field.height, n_rows)
    col_index = block_indices(field.width, n_cols)

    intensities = np.zeros((n_rows, n_cols), dtype=np.float64)
    np.add.at(
        intensities,
        (row_index[:, np.newaxis], col_index[np.newaxis, :]),
        field.values.astype(np.float64),
    )
    return intensities
