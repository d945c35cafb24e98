"""
Square raster geometry for a token sequence.

The ``legacy`` layout maps cell (x, y) to sequence index ``y*x + x``. That is
not a scan order: several cells share an index and some indices are never
reached (for N=4 the raster is 2x2 and index 3 is skipped). It is kept as the
default so renders stay comparable with earlier output; ``row-major`` gives
the plain ``y*dim + x`` fill.
"""
import math

import numpy as np

from .errors import DegenerateInputError, LayoutError

LEGACY = 'legacy'
ROW_MAJOR = 'row-major'


def raster_dim(n):
    """Side of the square raster for ``n`` tokens: ceil(sqrt(n))."""
    if n < 1:
        raise DegenerateInputError(f'cannot lay out {n} tokens, need at least one')
    root = math.isqrt(n)
    dim = root if root * root == n else root + 1
    if dim * dim < n:
        raise LayoutError(f'raster of side {dim} has fewer than {n} cells')
    return dim


def linear_index(x, y, dim, layout=LEGACY):
    if layout == LEGACY:
        return y * x + x
    if layout == ROW_MAJOR:
        return y * dim + x
    raise ValueError(f'unknown layout {layout!r}')


def index_grid(dim, layout=LEGACY):
    """Sequence index of every cell as a (dim, dim) array indexed [y, x]."""
    ys, xs = np.indices((dim, dim), dtype=np.int64)
    return linear_index(xs, ys, dim, layout)


def iter_cells(n, layout=LEGACY):
    """Yield (x, y, i) for every cell whose index falls inside the sequence.

    Rows are visited top to bottom, left to right.
    """
    dim = raster_dim(n)
    for y in range(dim):
        for x in range(dim):
            i = linear_index(x, y, dim, layout)
            if i < n:
                yield x, y, i


def unreached_indices(n, layout=LEGACY):
    reached = {i for _, _, i in iter_cells(n, layout)}
    return [k for k in range(n) if k not in reached]
