import os
import tempfile
import unittest

from codeimage.classify import (
    Prediction, check_input_size, classify_directory, classify_image, format_prediction,
    load_image, load_labels, top_k,
)
from codeimage.errors import DimensionMismatchError, EvaluationError, LabelLookupError, MissingFileError

from fakes import FakeEvaluator, make_fixture


class TestRanking(unittest.TestCase):
    def test_top_two(self):
        self.assertEqual(
            top_k([0.1, 0.9, 0.4], ['cat', 'dog', 'fox'], k=2),
            [Prediction(0.9, 1, 'dog'), Prediction(0.4, 2, 'fox')],
        )

    def test_ties_keep_index_order(self):
        ranked = top_k([0.5, 0.2, 0.5, 0.5], ['a', 'b', 'c', 'd'], k=4)
        self.assertEqual([p.index for p in ranked], [0, 2, 3, 1])

    def test_k_larger_than_outputs(self):
        self.assertEqual(len(top_k([0.3, 0.7], ['a', 'b', 'c'], k=10)), 2)

    def test_short_label_list(self):
        with self.assertRaises(LabelLookupError):
            top_k([0.1, 0.2, 0.3], ['a', 'b'])

    def test_format(self):
        self.assertEqual(
            format_prediction(0, Prediction(0.9, 1, 'dog')),
            'Prediction 0 (Type: dog | Ranked: 0.9, File-Index: 1)',
        )


class TestInputs(unittest.TestCase):
    def test_load_labels_strips_wordnet_ids(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'words.txt')
            with open(path, 'w', encoding='utf-8') as f:
                f.write('n01440764 tench, Tinca tinca\nn01443537 goldfish\nplain label\n')
            self.assertEqual(load_labels(path), ['tench, Tinca tinca', 'goldfish', 'plain label'])

    def test_load_image_shape(self):
        with tempfile.TemporaryDirectory() as tmp:
            _, _, image_dir = make_fixture(tmp)
            x = load_image(os.path.join(image_dir, 'dog1.jpg'))
        self.assertEqual(x.shape, (1, 224, 224, 3))
        self.assertLessEqual(float(x.max()), 1.0)

    def test_dimension_check(self):
        self.assertEqual(check_input_size(FakeEvaluator()), 224 * 224 * 3)
        with self.assertRaises(DimensionMismatchError) as ctx:
            check_input_size(FakeEvaluator(input_size=100))
        self.assertEqual(ctx.exception.actual, 100)


class TestClassify(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.model, self.labels, self.images = make_fixture(
            self._tmp.name, images=('dog1.jpg', 'cat2.png', 'readme.txt'))

    def tearDown(self):
        self._tmp.cleanup()

    def test_classify_image(self):
        evaluator = FakeEvaluator()
        preds = classify_image(os.path.join(self.images, 'dog1.jpg'), self.model, self.labels,
                               k=2, evaluator=evaluator)
        self.assertEqual([p.label for p in preds], ['dog', 'fox'])
        self.assertEqual(evaluator.loaded, self.model)
        self.assertEqual(evaluator.inputs[0].shape, (1, 224, 224, 3))
        self.assertTrue(evaluator.closed)

    def test_classify_directory(self):
        results = classify_directory(self.images, self.model, self.labels, k=1, evaluator=FakeEvaluator())
        self.assertEqual([os.path.basename(p) for p, _ in results], ['cat2.png', 'dog1.jpg'])
        self.assertTrue(all(preds[0].label == 'dog' for _, preds in results))

    def test_missing_model(self):
        with self.assertLogs('codeimage.classify', level='ERROR'):
            with self.assertRaises(MissingFileError) as ctx:
                classify_image(os.path.join(self.images, 'dog1.jpg'), 'nope.h5', self.labels,
                               evaluator=FakeEvaluator())
        self.assertEqual(ctx.exception.path, 'nope.h5')

    def test_model_directory_is_accepted(self):
        saved_model = os.path.join(self._tmp.name, 'models', 'saved')
        os.makedirs(saved_model)
        evaluator = FakeEvaluator()
        classify_image(os.path.join(self.images, 'dog1.jpg'), saved_model, self.labels, evaluator=evaluator)
        self.assertEqual(evaluator.loaded, saved_model)

    def test_missing_image(self):
        with self.assertLogs('codeimage.classify', level='ERROR'):
            with self.assertRaises(MissingFileError):
                classify_image(os.path.join(self.images, 'ghost.jpg'), self.model, self.labels,
                               evaluator=FakeEvaluator())

    def test_dimension_mismatch_aborts(self):
        evaluator = FakeEvaluator(input_size=32 * 32 * 3)
        with self.assertRaises(DimensionMismatchError):
            classify_image(os.path.join(self.images, 'dog1.jpg'), self.model, self.labels,
                           evaluator=evaluator)
        self.assertEqual(evaluator.inputs, [])
        self.assertTrue(evaluator.closed)

    def test_short_label_file_fails_before_evaluation(self):
        evaluator = FakeEvaluator(outputs=(0.1, 0.2, 0.3, 0.4))
        with self.assertRaises(LabelLookupError):
            classify_image(os.path.join(self.images, 'dog1.jpg'), self.model, self.labels,
                           evaluator=evaluator)
        self.assertEqual(evaluator.inputs, [])

    def test_evaluator_failure_is_reraised(self):
        evaluator = FakeEvaluator(fail_with=RuntimeError('out of memory'))
        with self.assertLogs('codeimage.classify', level='ERROR') as logs:
            with self.assertRaises(EvaluationError) as ctx:
                classify_image(os.path.join(self.images, 'dog1.jpg'), self.model, self.labels,
                               evaluator=evaluator)
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)
        self.assertIn('out of memory', logs.output[0])


if __name__ == '__main__':
    unittest.main()
