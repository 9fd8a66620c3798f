"""
Temporal Alignment Module - Dynamic Time Warping

Finds the lowest-cost monotone correspondence between the time steps of two
spectrograms with possibly different lengths.

Algorithm:
    1. Cost: L1 distance between feature rows
    2. Cumulative cost:
         D[0][0] = cost(0, 0)
         D[i][j] = cost(i, j) + min(D[i-1][j-1], D[i][j-1], D[i-1][j])
    3. Backtrack from (Ta-1, Tb-1) to (0, 0). Ties prefer the diagonal,
       then the step along the second sequence.

Without a band the full (Ta, Tb) cost matrix is built with torch.cdist and
handed to librosa.sequence.dtw. With a Sakoe-Chiba band only the cells near
the line joining the two corners are ever computed: costs and cumulative
costs are stored as (Ta, W) row slices, W being the band width, so work and
memory are O(Ta * W).
"""

import math

import librosa
import numpy as np
import torch

from ..errors import InvalidInputError

# Upper bound on elements of the (rows, W, C) difference tensor per chunk
BAND_CHUNK_ELEMENTS = 1 << 22


def _check_features(features_a, features_b):
    if features_a.ndim != 2 or features_b.ndim != 2:
        raise InvalidInputError(
            f"features must be 2D (steps, dims), got {features_a.ndim}D and {features_b.ndim}D"
        )
    if features_a.shape[1] != features_b.shape[1]:
        raise InvalidInputError(
            f"features must have the same number of dimensions, "
            f"got {features_a.shape[1]} and {features_b.shape[1]}"
        )


def compute_cost_matrix(features_a, features_b):
    """
    Pairwise L1 distance between the time steps of two feature matrices.

    Args:
        features_a (torch.Tensor): (Ta, C) features
        features_b (torch.Tensor): (Tb, C) features

    Returns:
        torch.Tensor: (Ta, Tb) float64 cost matrix

    Raises:
        InvalidInputError: If the inputs are not 2D or C differs
    """
    _check_features(features_a, features_b)

    if features_a.shape[0] == 0 or features_b.shape[0] == 0:
        return torch.zeros(features_a.shape[0], features_b.shape[0], dtype=torch.float64)

    return torch.cdist(
        features_a.to(torch.float64),
        features_b.to(torch.float64),
        p=1
    )


# ============================================================================
# Sakoe-Chiba band
# ============================================================================

def band_bounds(steps_a, steps_b, band):
    """
    First and last column of the band in every row.

    The band follows the line from (0, 0) to (Ta-1, Tb-1). Its radius is
    widened to at least the line's slope (and at least 1) so every row
    overlaps the next and a monotone path always exists.

    Args:
        steps_a (int): Number of rows, Ta >= 1
        steps_b (int): Number of columns, Tb >= 1
        band (int): Requested radius in steps

    Returns:
        tuple: (lower, upper) int64 arrays of length Ta, both non-decreasing,
            with lower[0] == 0 and upper[-1] == Tb - 1
    """
    slope = (steps_b - 1) / (steps_a - 1) if steps_a > 1 else float(steps_b)
    radius = max(band, math.ceil(slope), 1)

    center = np.arange(steps_a, dtype=np.float64) * slope if steps_a > 1 else np.zeros(1)
    lower = np.clip(np.ceil(center - radius), 0, steps_b - 1).astype(np.int64)
    upper = np.clip(np.floor(center + radius), 0, steps_b - 1).astype(np.int64)
    return lower, upper


def banded_cost(features_a, features_b, lower, upper):
    """
    L1 costs of the in-band cells only.

    Args:
        features_a (torch.Tensor): (Ta, C) features
        features_b (torch.Tensor): (Tb, C) features
        lower (np.ndarray): First band column per row
        upper (np.ndarray): Last band column per row

    Returns:
        np.ndarray: (Ta, W) float64 costs, entry [i, k] for column
            lower[i] + k, inf past upper[i]
    """
    _check_features(features_a, features_b)

    a = features_a.to(torch.float64)
    b = features_b.to(torch.float64)
    steps_a, dims = a.shape
    width = int(np.max(upper - lower)) + 1

    lower_t = torch.from_numpy(lower).to(a.device)
    upper_t = torch.from_numpy(upper).to(a.device)
    offsets = torch.arange(width, device=a.device)

    cost = torch.full((steps_a, width), float('inf'), dtype=torch.float64, device=a.device)
    rows_per_chunk = max(1, BAND_CHUNK_ELEMENTS // (width * dims))

    for start in range(0, steps_a, rows_per_chunk):
        stop = min(start + rows_per_chunk, steps_a)
        cols = lower_t[start:stop, None] + offsets[None, :]          # (n, W)
        inside = cols <= upper_t[start:stop, None]

        diff = a[start:stop, None, :] - b[cols.clamp(max=b.shape[0] - 1)]
        chunk = diff.abs().sum(dim=-1)
        cost[start:stop] = torch.where(inside, chunk, cost[start:stop])

    return cost.cpu().numpy()


def _band_lookup(acc, lower, rows, cols):
    """Cumulative costs at (rows, cols), inf outside the band"""
    values = np.full(len(rows), np.inf)
    offsets = cols - lower[rows]
    inside = (offsets >= 0) & (offsets < acc.shape[1])
    values[inside] = acc[rows[inside], offsets[inside]]
    return values


def banded_cumulative_cost(cost, lower, upper):
    """
    Accumulated DTW costs restricted to the band.

    Cells are evaluated one anti-diagonal at a time. On every anti-diagonal
    the in-band cells form one contiguous run of rows, so each step is a
    single vector operation over at most W cells.

    Args:
        cost (np.ndarray): (Ta, W) in-band costs from banded_cost()
        lower (np.ndarray): First band column per row
        upper (np.ndarray): Last band column per row

    Returns:
        np.ndarray: (Ta, W) cumulative costs in the same layout
    """
    steps_a = cost.shape[0]
    steps_b = int(upper[-1]) + 1
    rows = np.arange(steps_a)

    acc = np.full(cost.shape, np.inf)
    acc[0, 0] = cost[0, 0]

    # Both are strictly increasing, so a diagonal's rows come from two searches
    first_diagonal = lower + rows
    last_diagonal = upper + rows

    for diagonal in range(1, steps_a + steps_b - 1):
        start = np.searchsorted(last_diagonal, diagonal, side='left')
        stop = np.searchsorted(first_diagonal, diagonal, side='right')
        i = rows[start:stop]
        j = diagonal - i

        has_up = i > 0
        prev = np.where(has_up, i - 1, 0)
        diag = np.where(has_up, _band_lookup(acc, lower, prev, j - 1), np.inf)
        up = np.where(has_up, _band_lookup(acc, lower, prev, j), np.inf)
        left = _band_lookup(acc, lower, i, j - 1)

        k = j - lower[i]
        acc[i, k] = cost[i, k] + np.minimum(np.minimum(diag, left), up)

    return acc


def banded_backtrack(acc, lower, steps_b):
    """
    Recover the optimal path from banded cumulative costs.

    Returns:
        np.ndarray: (L, 2) int64 index pairs from (0, 0) to (Ta-1, Tb-1)
    """
    width = acc.shape[1]

    def at(i, j):
        offset = j - lower[i]
        return acc[i, offset] if 0 <= offset < width else np.inf

    i, j = acc.shape[0] - 1, steps_b - 1
    path = [(i, j)]

    while i > 0 or j > 0:
        if i == 0:
            j -= 1
        elif j == 0:
            i -= 1
        else:
            # Same preference order as librosa's default step sizes
            move = int(np.argmin((at(i - 1, j - 1), at(i, j - 1), at(i - 1, j))))
            if move == 0:
                i, j = i - 1, j - 1
            elif move == 1:
                j -= 1
            else:
                i -= 1
        path.append((i, j))

    path.reverse()
    return np.asarray(path, dtype=np.int64)


# ============================================================================
# Alignment
# ============================================================================

def dtw_path(features_a, features_b, band=None):
    """
    Lowest-cost monotone alignment between two feature sequences.

    Args:
        features_a (torch.Tensor): (Ta, C) features
        features_b (torch.Tensor): (Tb, C) features
        band (int, optional): Sakoe-Chiba band radius in steps, None for
            an unconstrained search

    Returns:
        np.ndarray: (L, 2) int64 index pairs, or (0, 2) if either input
            has no steps

    Raises:
        InvalidInputError: If the feature dimensions differ

    Example:
        >>> a = torch.rand(5, 128)
        >>> path = dtw_path(a, a)
        >>> print(path[:, 0].tolist() == path[:, 1].tolist())
        True

    Performance:
        - O(Ta * Tb) time and memory without a band
        - O(Ta * W) with a band of width W
    """
    _check_features(features_a, features_b)
    steps_a, steps_b = features_a.shape[0], features_b.shape[0]

    if steps_a == 0 or steps_b == 0:
        return np.zeros((0, 2), dtype=np.int64)

    if band is not None:
        lower, upper = band_bounds(steps_a, steps_b, band)
        cost = banded_cost(features_a, features_b, lower, upper)
        acc = banded_cumulative_cost(cost, lower, upper)
        return banded_backtrack(acc, lower, steps_b)

    cost = compute_cost_matrix(features_a, features_b).cpu().numpy()
    _, warping_path = librosa.sequence.dtw(C=cost, backtrack=True)

    # librosa returns the path from the end to the start
    return np.ascontiguousarray(warping_path[::-1], dtype=np.int64)


def align(features_a, features_b, band=None):
    """
    Warp two feature sequences onto a common time axis.

    Args:
        features_a (torch.Tensor): (Ta, C) features
        features_b (torch.Tensor): (Tb, C) features
        band (int, optional): Sakoe-Chiba band radius in steps

    Returns:
        tuple: (aligned_a, aligned_b), each (L, C), row k of both taken
            from the k-th pair of the optimal path
    """
    path = torch.from_numpy(dtw_path(features_a, features_b, band=band))
    path = path.to(features_a.device)
    return features_a[path[:, 0]], features_b[path[:, 1]]
