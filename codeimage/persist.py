"""Write finished rasters and the batch manifest to the output directory."""
import logging
import os
from pathlib import Path

import pandas as pd
from PIL import Image

from .config import IMAGE_EXT, MANIFEST_NAME

logger = logging.getLogger(__name__)

MANIFEST_COLUMNS = [
    'source', 'output', 'tokens', 'dim', 'range_min', 'range_max',
    'unreached', 'status', 'error',
]


def output_name(path, ext=IMAGE_EXT, root=None):
    """Image filename for a source file.

    With ``root``, subdirectories below it are folded into the name
    (``a/mod.py`` -> ``a__mod.py.png``) so files sharing a basename stay apart.
    """
    path = Path(path)
    parts = path.relative_to(root).parts if root is not None else (path.name,)
    return f"{'__'.join(parts)}.{ext}"


def save_image(raster, name, out_dir):
    out_dir = Path(out_dir)
    os.makedirs(out_dir, exist_ok=True)
    out_path = out_dir / name
    Image.fromarray(raster).save(out_path)
    logger.debug('Saved image: %s (%d bytes)', out_path, out_path.stat().st_size)
    return out_path


def write_manifest(rows, out_dir):
    out_dir = Path(out_dir)
    os.makedirs(out_dir, exist_ok=True)
    out_path = out_dir / MANIFEST_NAME
    pd.DataFrame(rows, columns=MANIFEST_COLUMNS).to_csv(out_path, index=False)
    return out_path
