"""
Image classification with a pre-trained Keras model.

The model sits behind a small evaluator interface (load, input/output size,
evaluate) so the ranking and label lookup can run without TensorFlow.
"""
import logging
import os
import re
from typing import NamedTuple

import numpy as np
from PIL import Image

from .config import DEFAULT_LABELS_PATH, DEFAULT_MODEL_PATH, EXPECTED_INPUT_SIZE, IMAGE_EXTENSIONS, IMG_SIZE, TOP_K
from .errors import CodeImageError, DimensionMismatchError, EvaluationError, LabelLookupError, MissingFileError
from .utils import Stopwatch

logger = logging.getLogger(__name__)

# ImageNet word lists start each line with a WordNet id, e.g. "n01440764 tench, Tinca tinca"
WORDNET_ID = re.compile(r'^n\d{8}\s+')


class Prediction(NamedTuple):
    value: float
    index: int
    label: str


class ModelEvaluator:
    """Interface the classifier needs from a model backend."""

    def load(self, path):
        raise NotImplementedError

    def input_size(self):
        raise NotImplementedError

    def output_size(self):
        raise NotImplementedError

    def input_name(self):
        return 'input'

    def evaluate(self, inputs):
        raise NotImplementedError

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


def _flat_size(shape):
    # Keras shapes carry a leading None batch axis
    dims = [d for d in shape if d is not None]
    return int(np.prod(dims)) if dims else 0


class KerasModelEvaluator(ModelEvaluator):
    def __init__(self):
        self.model = None

    def load(self, path):
        # Imported here so the visualizer never pulls in TensorFlow
        import tensorflow as tf
        self.model = tf.keras.models.load_model(path, compile=False)
        return self

    def input_size(self):
        return _flat_size(self.model.input_shape)

    def output_size(self):
        return _flat_size(self.model.output_shape)

    def input_name(self):
        return getattr(self.model.inputs[0], 'name', 'input')

    def evaluate(self, inputs):
        preds = self.model.predict(inputs, verbose=0)
        return np.asarray(preds).reshape(-1)

    def close(self):
        if self.model is not None:
            import tensorflow as tf
            self.model = None
            tf.keras.backend.clear_session()


def require_file(path, message=None, allow_dir=False):
    """Raise MissingFileError unless ``path`` is a file (or any path, with ``allow_dir``)."""
    found = os.path.exists(path) if allow_dir else os.path.isfile(path)
    if not found:
        if message:
            logger.error(message)
        raise MissingFileError(path)
    return path


def check_input_size(evaluator, expected=EXPECTED_INPUT_SIZE):
    actual = evaluator.input_size()
    if actual != expected:
        raise DimensionMismatchError(evaluator.input_name(), actual, expected)
    return actual


def load_image(path, size=IMG_SIZE):
    with Image.open(path) as img:
        img = img.convert('RGB').resize(size)
        arr = np.array(img).astype('float32') / 255.0
    return np.expand_dims(arr, axis=0)


def load_labels(path):
    with open(path, 'r', encoding='utf-8') as f:
        return [WORDNET_ID.sub('', line.rstrip('\r\n'), count=1) for line in f]


def top_k(outputs, labels, k=TOP_K):
    """Highest ``k`` outputs as Predictions, largest first.

    Equal values keep their original order, so the lower index ranks first.
    """
    outputs = [float(v) for v in np.asarray(outputs).reshape(-1)]
    if len(labels) < len(outputs):
        raise LabelLookupError(
            f'label list has {len(labels)} entries but the model produced {len(outputs)} outputs'
        )
    ranked = sorted(enumerate(outputs), key=lambda p: p[1], reverse=True)
    return [Prediction(value, index, labels[index]) for index, value in ranked[:k]]


def format_prediction(rank, prediction):
    return 'Prediction {} (Type: {} | Ranked: {}, File-Index: {})'.format(
        rank, prediction.label, prediction.value, prediction.index)


def _run(step, *args):
    """Call into the evaluator, surfacing its failure before re-raising."""
    try:
        return step(*args)
    except CodeImageError:
        raise
    except Exception as e:
        logger.error('Error: %s', e, exc_info=True)
        raise EvaluationError(f'Model evaluation failed: {e}') from e


def find_images(image_dir):
    if not os.path.isdir(image_dir):
        raise MissingFileError(image_dir, f"Error: The image directory '{image_dir}' does not exist.")
    return [
        os.path.join(image_dir, fname)
        for fname in sorted(os.listdir(image_dir))
        if fname.lower().endswith(IMAGE_EXTENSIONS) and os.path.isfile(os.path.join(image_dir, fname))
    ]


def classify_images(image_paths, model_path=DEFAULT_MODEL_PATH, labels_path=DEFAULT_LABELS_PATH,
                    k=TOP_K, evaluator=None, stopwatch=None):
    """Classify each image with one loaded model.

    Returns a list of (image_path, predictions) pairs in input order.
    """
    stopwatch = stopwatch or Stopwatch()
    require_file(model_path, f"Error: The model '{model_path}' does not exist. Please download the model.",
                 allow_dir=True)
    require_file(labels_path, f"Error: The label file '{labels_path}' does not exist.")
    labels = load_labels(labels_path)

    results = []
    with (evaluator or KerasModelEvaluator()) as model:
        logger.info('Loading model from %s', model_path)
        stopwatch.lap()
        _run(model.load, model_path)
        logger.info('Model loaded in %.2fs', stopwatch.lap())
        check_input_size(model)
        if len(labels) < model.output_size():
            raise LabelLookupError(
                f'{labels_path} has {len(labels)} labels but the model has {model.output_size()} outputs'
            )

        for path in image_paths:
            require_file(path, f"Error: The test image file '{path}' does not exist.")
            x = load_image(path)
            outputs = _run(model.evaluate, x)
            logger.info('Prediction time for %s: %.3fs', path, stopwatch.lap())
            results.append((path, top_k(outputs, labels, k)))
    return results


def classify_image(image_path, model_path=DEFAULT_MODEL_PATH, labels_path=DEFAULT_LABELS_PATH,
                   k=TOP_K, evaluator=None, stopwatch=None):
    [(_, predictions)] = classify_images([image_path], model_path, labels_path, k, evaluator, stopwatch)
    return predictions


def classify_directory(image_dir, model_path=DEFAULT_MODEL_PATH, labels_path=DEFAULT_LABELS_PATH,
                       k=TOP_K, evaluator=None, stopwatch=None):
    images = find_images(image_dir)
    if not images:
        logger.warning('No images found under %s', image_dir)
        return []
    return classify_images(images, model_path, labels_path, k, evaluator, stopwatch)
