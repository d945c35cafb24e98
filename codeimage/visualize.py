"""
Source directory -> one bitmap per file.

Each file is tokenized, rendered and saved before the next one is opened.
Files that cannot be tokenized, or that hold no tokens, are logged and listed
as skipped in the manifest; the rest of the batch still runs.
"""
import logging
from pathlib import Path

from tqdm import tqdm

from .assemble import ImageContainer, render
from .config import DEFAULT_OUT_DIR, VisualizeSettings
from .errors import DegenerateInputError, MissingFileError, TokenizeError
from .geometry import raster_dim, unreached_indices
from .persist import output_name, save_image, write_manifest
from .tokens import extract_file
from .utils import Stopwatch

logger = logging.getLogger(__name__)


def iter_sources(src_dir, pattern='*.py', recursive=False):
    src_dir = Path(src_dir)
    if not src_dir.is_dir():
        raise MissingFileError(src_dir, f"Error: The source directory '{src_dir}' does not exist.")
    matches = src_dir.rglob(pattern) if recursive else src_dir.glob(pattern)
    return sorted(p for p in matches if p.is_file())


def visualize_file(path, out_dir=DEFAULT_OUT_DIR, settings=None, root=None):
    """Tokenize, render and save one file. Returns the persisted container.

    ``root`` is the directory the output name is made relative to.
    """
    settings = settings or VisualizeSettings()
    container = ImageContainer(name=output_name(path, root=root))
    container.raw_data = extract_file(path, settings.encoding)
    if not container.raw_data:
        raise DegenerateInputError(f'{path} contains no tokens')
    render(container, settings.range_mode, settings.layout, settings.size)
    container.path = save_image(container.image, container.name, out_dir)
    return container


def _row(path, **values):
    row = dict.fromkeys(('output', 'tokens', 'dim', 'range_min', 'range_max', 'unreached', 'error'))
    row.update(source=str(path), status='ok')
    row.update(values)
    return row


def visualize_directory(src_dir, out_dir=DEFAULT_OUT_DIR, settings=None, stopwatch=None):
    """Render every matching file under ``src_dir`` and write manifest.csv.

    Returns the manifest rows, one per source file.
    """
    settings = settings or VisualizeSettings()
    stopwatch = stopwatch or Stopwatch()
    sources = iter_sources(src_dir, settings.pattern, settings.recursive)
    logger.info('Found %d source files in %s', len(sources), src_dir)

    root = Path(src_dir)
    written = {}
    rows = []
    for path in tqdm(sources, desc='Visualizing', unit='file', disable=not sources):
        name = output_name(path, root=root)
        if name in written:
            logger.warning('Skipping %s: output %s already written for %s', path, name, written[name])
            rows.append(_row(path, status='skipped', error=f'output name {name} already used by {written[name]}'))
            continue
        try:
            container = visualize_file(path, out_dir, settings, root=root)
        except (TokenizeError, DegenerateInputError) as e:
            logger.warning('Skipping %s: %s', path, e)
            rows.append(_row(path, status='skipped', error=str(e)))
            continue
        written[name] = path
        n = container.token_count
        rows.append(_row(
            path,
            output=str(container.path),
            tokens=n,
            dim=raster_dim(n),
            range_min=container.norm_range.min,
            range_max=container.norm_range.max,
            unreached=len(unreached_indices(n, settings.layout)),
        ))
        logger.debug('%s -> %s in %.3fs', path, container.path, stopwatch.lap())

    manifest = write_manifest(rows, out_dir)
    logger.info('Wrote %s (%.2fs total)', manifest, stopwatch.elapsed())
    return rows
