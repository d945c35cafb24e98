"""
Token code -> RGB.

A code is rescaled into [0, 255*255], split into its high and low byte for the
red and green channels, and blue is ``255 * |sin(r * g)|``.
"""
import logging
from typing import NamedTuple

import numpy as np

from .errors import DegenerateInputError
from .tokens import FIXED_RANGE

logger = logging.getLogger(__name__)

UPSCALE = 255 * 255
NEUTRAL_COLOR = (128, 128, 128)


class NormalizationRange(NamedTuple):
    min: int
    max: int

    @property
    def span(self):
        return self.max - self.min


def normalization_range(seq, mode='data'):
    if len(seq) == 0:
        raise DegenerateInputError('empty token sequence has no normalization range')
    if mode == 'data':
        return NormalizationRange(int(min(seq)), int(max(seq)))
    if mode == 'fixed':
        return NormalizationRange(*FIXED_RANGE)
    raise ValueError(f'unknown range mode {mode!r}')


def colorize(v, rng):
    """Color of a single token code as an (r, g, b) tuple."""
    return tuple(int(c) for c in colorize_array([v], rng)[0])


def colorize_array(values, rng):
    """Colors for an array of codes, as uint8 with a trailing axis of 3."""
    values = np.asarray(values, dtype=np.int64)
    if rng.span == 0:
        logger.warning('All tokens share code %d, using neutral color', rng.min)
        return np.broadcast_to(np.array(NEUTRAL_COLOR, dtype=np.uint8), values.shape + (3,)).copy()

    scaled = ((values - rng.min) * (UPSCALE / rng.span)).astype(np.int64)
    r = (scaled >> 8) & 0xFF
    g = scaled & 0xFF
    b = 255 * np.abs(np.sin((r * g).astype(np.float64)))
    rgb = np.stack([r, g, b], axis=-1).astype(np.float64)
    return np.clip(rgb, 0, 255).astype(np.uint8)
