"""
Command line entry point.

Usage:
    codeimage classify [IMAGE|DIR] [--model PATH] [--labels PATH] [--top-k N]
    codeimage visualize SRC_DIR [--out DIR] [--pattern GLOB] [--range data|fixed]
"""
import argparse
import logging
import os

from . import __version__
from .classify import classify_directory, classify_images, format_prediction
from .config import (
    DEFAULT_IMAGE, DEFAULT_IMAGE_DIR, DEFAULT_LABELS_PATH, DEFAULT_MODEL_PATH, DEFAULT_OUT_DIR,
    DEFAULT_PATTERN, IMG_SIZE, LAYOUTS, RANGE_MODES, TOP_K, VisualizeSettings,
)
from .errors import CodeImageError, DimensionMismatchError, EvaluationError, LabelLookupError, MissingFileError
from .logging_config import setup_logging
from .utils import Stopwatch
from .visualize import visualize_directory

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PARTIAL = 1
EXIT_USAGE = 2
EXIT_MISSING_FILE = 3
EXIT_DIMENSION_MISMATCH = 4
EXIT_EVALUATION = 5
EXIT_LABELS = 6
EXIT_FAILURE = 7


def build_parser():
    parser = argparse.ArgumentParser(prog='codeimage', description=__doc__.splitlines()[1])
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    parser.add_argument('--log-file', default=None, help='Also write logs to this file')
    sub = parser.add_subparsers(dest='command')

    cls = sub.add_parser('classify', help='Classify an image or a directory of images')
    cls.add_argument('image', nargs='?', default=None,
                     help=f'Image file or directory (default: {DEFAULT_IMAGE_DIR}/{DEFAULT_IMAGE})')
    cls.add_argument('--model', default=DEFAULT_MODEL_PATH, help='Keras model file')
    cls.add_argument('--labels', default=DEFAULT_LABELS_PATH, help='Label file, one class per line')
    cls.add_argument('--top-k', type=int, default=TOP_K, help='Number of predictions to print')

    vis = sub.add_parser('visualize', help='Render each source file in a directory as a bitmap')
    vis.add_argument('src_dir', help='Directory of source files')
    vis.add_argument('--out', default=DEFAULT_OUT_DIR, help='Output directory for images')
    vis.add_argument('--pattern', default=DEFAULT_PATTERN, help='Glob for source files')
    vis.add_argument('--recursive', action='store_true', help='Descend into subdirectories')
    vis.add_argument('--range', dest='range_mode', choices=RANGE_MODES, default='data',
                     help='Normalize against this file\'s codes or the full token range')
    vis.add_argument('--layout', choices=LAYOUTS, default='legacy', help='Cell to token mapping')
    vis.add_argument('--size', type=int, default=IMG_SIZE[0], help='Side of the saved image in pixels')
    vis.add_argument('--encoding', default=None,
                     help='Force a source encoding (default: BOM or coding line, else utf-8)')
    return parser


def resolve_image(image):
    if image is None:
        return os.path.join(DEFAULT_IMAGE_DIR, DEFAULT_IMAGE)
    if os.path.exists(image):
        return image
    # bare names are looked up in the images directory
    return os.path.join(DEFAULT_IMAGE_DIR, image)


def run_classify(args, stopwatch):
    target = resolve_image(args.image)
    if os.path.isdir(target):
        results = classify_directory(target, args.model, args.labels, args.top_k, stopwatch=stopwatch)
    else:
        results = classify_images([target], args.model, args.labels, args.top_k, stopwatch=stopwatch)
    for path, predictions in results:
        print('Image:', path)
        for rank, prediction in enumerate(predictions):
            print(format_prediction(rank, prediction))
    return EXIT_OK


def run_visualize(args, stopwatch):
    settings = VisualizeSettings(
        range_mode=args.range_mode,
        layout=args.layout,
        size=(args.size, args.size),
        pattern=args.pattern,
        recursive=args.recursive,
        encoding=args.encoding,
    )
    rows = visualize_directory(args.src_dir, args.out, settings, stopwatch)
    skipped = [r for r in rows if r['status'] != 'ok']
    print(f'Visualized {len(rows) - len(skipped)} of {len(rows)} files into {args.out}')
    for row in skipped:
        print(f"  skipped {row['source']}: {row['error']}")
    return EXIT_PARTIAL if skipped else EXIT_OK


COMMANDS = {
    'classify': run_classify,
    'visualize': run_visualize,
}


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command not in COMMANDS:
        parser.print_usage()
        return EXIT_USAGE
    if args.command == 'visualize' and args.size < 1:
        parser.error('--size must be a positive number of pixels')

    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)
    stopwatch = Stopwatch()
    try:
        return COMMANDS[args.command](args, stopwatch)
    except MissingFileError as e:
        print('Error:', e)
        return EXIT_MISSING_FILE
    except DimensionMismatchError as e:
        print('Error:', e)
        return EXIT_DIMENSION_MISMATCH
    except EvaluationError as e:
        print('Error:', e)
        if e.__cause__ is not None:
            print(' Inner Exception:', e.__cause__)
        return EXIT_EVALUATION
    except LabelLookupError as e:
        print('Error:', e)
        return EXIT_LABELS
    except (CodeImageError, OSError) as e:
        print('Error:', e)
        return EXIT_FAILURE


if __name__ == '__main__':
    raise SystemExit(main())
