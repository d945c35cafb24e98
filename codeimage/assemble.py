"""Build the square raster for a token sequence and bring it to canonical size."""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import cv2
import numpy as np

from .colorize import NormalizationRange, colorize_array, normalization_range
from .config import IMG_SIZE
from .geometry import LEGACY, index_grid, raster_dim

logger = logging.getLogger(__name__)

BACKGROUND = (0, 0, 0)


@dataclass
class ImageContainer:
    name: str
    raw_data: tuple = ()
    image: Optional[np.ndarray] = field(default=None, repr=False)
    norm_range: Optional[NormalizationRange] = None
    path: Optional[Path] = None

    @property
    def token_count(self):
        return len(self.raw_data)


def assemble(seq, rng=None, layout=LEGACY, background=BACKGROUND):
    """Return a (dim, dim, 3) uint8 raster indexed [y, x].

    Cells whose sequence index is past the end of ``seq`` keep ``background``.
    """
    n = len(seq)
    dim = raster_dim(n)
    if rng is None:
        rng = normalization_range(seq)

    raster = np.empty((dim, dim, 3), dtype=np.uint8)
    raster[:] = background

    grid = index_grid(dim, layout)
    visited = grid < n
    codes = np.asarray(seq, dtype=np.int64)
    raster[visited] = colorize_array(codes[grid[visited]], rng)
    logger.debug('assembled %dx%d raster, %d of %d cells written', dim, dim, int(visited.sum()), dim * dim)
    return raster


def resize(raster, size=IMG_SIZE):
    width, height = size
    if raster.shape[0] == height and raster.shape[1] == width:
        return raster.copy()
    # INTER_AREA averages when shrinking; nearest keeps blocks crisp when enlarging
    shrinking = raster.shape[0] > height or raster.shape[1] > width
    interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_NEAREST
    return cv2.resize(raster, (width, height), interpolation=interpolation)


def render(container, range_mode='data', layout=LEGACY, size=IMG_SIZE):
    """Fill ``container.image`` with the canonical-size raster of its tokens."""
    container.norm_range = normalization_range(container.raw_data, range_mode)
    container.image = assemble(container.raw_data, container.norm_range, layout)
    container.image = resize(container.image, size)
    return container
