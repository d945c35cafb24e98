"""
Paths, sizes and defaults shared by the CLI, the classifier and the visualizer.

Paths are relative to the working directory, the same way the inference script
looked for its model next to where it was launched.
"""
import os
from dataclasses import dataclass
from typing import Optional

IMG_SIZE = (224, 224)
CHANNELS = 3
EXPECTED_INPUT_SIZE = IMG_SIZE[0] * IMG_SIZE[1] * CHANNELS

# Classification
DEFAULT_MODEL_PATH = os.path.join('models', 'classifier.h5')
DEFAULT_LABELS_PATH = 'imagenet_words.txt'
DEFAULT_IMAGE_DIR = 'images'
DEFAULT_IMAGE = 'dog1-white_background.jpg'
IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.bmp')
TOP_K = 10

# Visualization
DEFAULT_OUT_DIR = 'visualizations'
DEFAULT_PATTERN = '*.py'
IMAGE_EXT = 'png'
MANIFEST_NAME = 'manifest.csv'
RANGE_MODES = ('data', 'fixed')
LAYOUTS = ('legacy', 'row-major')


@dataclass(frozen=True)
class VisualizeSettings:
    range_mode: str = 'data'
    layout: str = 'legacy'
    size: tuple = IMG_SIZE
    pattern: str = DEFAULT_PATTERN
    recursive: bool = False
    encoding: Optional[str] = None

    def __post_init__(self):
        if self.range_mode not in RANGE_MODES:
            raise ValueError(f'range_mode must be one of {RANGE_MODES}, got {self.range_mode!r}')
        if self.layout not in LAYOUTS:
            raise ValueError(f'layout must be one of {LAYOUTS}, got {self.layout!r}')
        if len(self.size) != 2 or min(self.size) < 1:
            raise ValueError(f'size must be two positive integers, got {self.size!r}')
