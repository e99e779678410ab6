"""
Tests for Utilities
===================

Data loading (IDX and CSV), encoding and batching helpers.
"""

import logging
import struct

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from neuronnet.utils import (configure_logging, load_mnist, load_csv, save_csv, one_hot_encode,
                             create_batches, accuracy_score, train_test_split, set_random_seed)


def write_idx_images(path, images):
    n, rows, cols = images.shape
    with open(path, 'wb') as f:
        f.write(struct.pack('>IIII', 2051, n, rows, cols))
        f.write(images.astype(np.uint8).tobytes())


def write_idx_labels(path, labels):
    with open(path, 'wb') as f:
        f.write(struct.pack('>II', 2049, len(labels)))
        f.write(np.asarray(labels, dtype=np.uint8).tobytes())


@pytest.fixture
def mnist_dir(tmp_path):
    rng = np.random.default_rng(0)
    write_idx_images(tmp_path / 'train-images.idx3-ubyte',
                     rng.integers(0, 256, size=(20, 28, 28)))
    write_idx_labels(tmp_path / 'train-labels.idx1-ubyte', rng.integers(0, 10, size=20))
    write_idx_images(tmp_path / 't10k-images.idx3-ubyte',
                     rng.integers(0, 256, size=(5, 28, 28)))
    write_idx_labels(tmp_path / 't10k-labels.idx1-ubyte', rng.integers(0, 10, size=5))
    return tmp_path


class TestLoadMNIST:

    def test_shapes_and_range(self, mnist_dir):
        data = load_mnist(mnist_dir)
        X_train, y_train = data['train']
        X_test, y_test = data['test']

        assert X_train.shape == (20, 784)
        assert X_test.shape == (5, 784)
        assert X_train.dtype == np.float32
        assert X_train.min() >= 0.0 and X_train.max() <= 1.0
        assert len(y_train) == 20 and len(y_test) == 5
        assert data['val'] is None

    def test_validation_split(self, mnist_dir):
        data = load_mnist(mnist_dir, val_ratio=0.25)

        assert len(data['train'][0]) == 15
        assert len(data['val'][0]) == 5

    def test_subset(self, mnist_dir):
        data = load_mnist(mnist_dir, subset_size=(8, 3))
        assert data['train'][0].shape == (8, 784)
        assert data['test'][0].shape == (3, 784)

    def test_bad_magic(self, tmp_path):
        with open(tmp_path / 'train-images.idx3-ubyte', 'wb') as f:
            f.write(struct.pack('>IIII', 1234, 0, 28, 28))
        with pytest.raises(ValueError):
            load_mnist(tmp_path)

    def test_missing_files(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_mnist(tmp_path)


class TestCSV:

    def test_roundtrip(self, tmp_path):
        X = np.array([[0.1, 0.2, 0.3], [0.4, 0.5, 0.6]], dtype=np.float32)
        Y = np.array([[1.0, 0.0], [0.0, 1.0]], dtype=np.float32)
        path = tmp_path / 'data.csv'

        save_csv(path, X, Y)
        X_loaded, Y_loaded = load_csv(path, 3, 2)

        np.testing.assert_allclose(X_loaded, X, atol=1e-6)
        np.testing.assert_allclose(Y_loaded, Y)

    def test_missing_file(self, tmp_path):
        assert load_csv(tmp_path / 'missing.csv', 3, 2) is None

    def test_too_few_columns(self, tmp_path):
        path = tmp_path / 'data.csv'
        path.write_text('1,2,3\n')
        assert load_csv(path, 3, 2) is None

    def test_not_numeric(self, tmp_path):
        path = tmp_path / 'data.csv'
        path.write_text('a,b,c,d,e\n')
        assert load_csv(path, 3, 2) is None


class TestHelpers:

    def test_one_hot_encode(self):
        encoded = one_hot_encode([0, 2, 1], num_classes=4)

        assert encoded.dtype == np.float32
        np.testing.assert_array_equal(encoded, np.eye(4)[[0, 2, 1]])
        assert one_hot_encode([0, 2]).shape == (2, 3)

    def test_create_batches(self):
        X = np.arange(10).reshape(10, 1)
        y = np.arange(10)

        batches = list(create_batches(X, y, batch_size=4, shuffle=False))

        assert [len(b[0]) for b in batches] == [4, 4, 2]
        np.testing.assert_array_equal(batches[2][1], [8, 9])

    def test_create_batches_shuffle_keeps_pairs(self):
        X = np.arange(10).reshape(10, 1)
        y = np.arange(10)

        for X_batch, y_batch in create_batches(X, y, batch_size=3):
            np.testing.assert_array_equal(X_batch[:, 0], y_batch)

    def test_accuracy_score(self):
        assert accuracy_score([0, 1, 1], [0, 1, 0]) == pytest.approx(2 / 3)
        assert accuracy_score(np.eye(2), np.array([[0.9, 0.1], [0.2, 0.8]])) == 1.0

    def test_train_test_split(self):
        X = np.arange(20).reshape(10, 2)
        y = np.arange(10)

        X_train, X_test, y_train, y_test = train_test_split(X, y, test_size=0.3, random_state=0)

        assert len(X_test) == 3 and len(X_train) == 7
        np.testing.assert_array_equal(X_test[:, 0] // 2, y_test)

    def test_set_random_seed(self):
        set_random_seed(3)
        a = np.random.rand(3)
        set_random_seed(3)
        np.testing.assert_array_equal(a, np.random.rand(3))

    def test_configure_logging_from_env(self, monkeypatch):
        monkeypatch.setenv('NEURONNET_LOG_LEVEL', 'WARNING')
        configure_logging()
        assert logging.getLogger('neuronnet').level == logging.WARNING

        configure_logging('debug')
        assert logging.getLogger('neuronnet').level == logging.DEBUG
        logging.getLogger('neuronnet').setLevel(logging.NOTSET)
