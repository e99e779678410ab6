"""
Utility Functions
=================

Helpers that produce and shape the engine's inputs:
- Data loading (MNIST IDX files, CSV)
- One-hot encoding
- Batching and splitting
- Logging setup
"""

import logging
import os
import struct
from pathlib import Path

import numpy as np

logger = logging.getLogger(__name__)

MNIST_IMAGE_SIZE = 28 * 28
MNIST_NUM_CLASSES = 10

# IDX magic number -> number of dimensions in the header
_IDX_MAGIC = {
    2049: 1,    # labels
    2051: 3,    # images
}


def configure_logging(level=None):
    """
    Set up logging for scripts using the library.

    The level comes from `level`, else the NEURONNET_LOG_LEVEL environment
    variable, else INFO.
    """
    level_name = level or os.environ.get('NEURONNET_LOG_LEVEL', 'INFO')
    log_level = getattr(logging, str(level_name).upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    logging.getLogger('neuronnet').setLevel(log_level)


def load_mnist(data_dir='mnist_dataset', val_ratio=0.0, subset_size=None, normalize=True):
    """
    Load MNIST from its four IDX files as flat network inputs.

    Args:
        data_dir: Directory holding the train/t10k image and label files
        val_ratio: Fraction of the training set held out for validation
        subset_size: Optional (train_size, test_size) random subsets
        normalize: Divide pixel values by 255

    Returns:
        Dict with 'train', 'val' and 'test' entries, each a tuple
        (X, y) with X of shape (N, 784) float32 and integer labels y.
        'val' is None when val_ratio is 0.
    """
    data_dir = Path(data_dir)

    splits = {}
    for name, prefix in [('train', 'train'), ('test', 't10k')]:
        images = _read_idx(_find_file(data_dir, f'{prefix}-images'), expected_magic=2051)
        labels = _read_idx(_find_file(data_dir, f'{prefix}-labels'), expected_magic=2049)
        splits[name] = (images.reshape(len(images), -1), labels)

    if subset_size is not None:
        for name, size in zip(('train', 'test'), subset_size):
            X, y = splits[name]
            keep = np.random.permutation(len(X))[:size]
            splits[name] = (X[keep], y[keep])

    for name, (X, y) in splits.items():
        X = X.astype(np.float32)
        if normalize:
            X /= 255.0
        splits[name] = (X, y)

    X_train, y_train = splits['train']
    val = None
    val_size = int(len(X_train) * val_ratio)
    if val_size > 0:
        val = (X_train[-val_size:], y_train[-val_size:])
        splits['train'] = (X_train[:-val_size], y_train[:-val_size])

    logger.info("Loaded MNIST: %d training, %d validation, %d test samples",
                len(splits['train'][0]), val_size, len(splits['test'][0]))

    return {'train': splits['train'], 'val': val, 'test': splits['test']}


def _find_file(data_dir, prefix):
    """Locate an IDX file by prefix, trying the usual MNIST suffixes first."""
    for suffix in ('.idx3-ubyte', '.idx1-ubyte', '-idx3-ubyte', '-idx1-ubyte', ''):
        path = data_dir / f"{prefix}{suffix}"
        if path.is_file():
            return path

    matches = sorted(p for p in data_dir.rglob(f'{prefix}*') if p.is_file())
    if not matches:
        raise FileNotFoundError(f"No MNIST file starting with '{prefix}' in {data_dir}")
    return matches[0]


def _read_idx(filepath, expected_magic):
    """Read an unsigned-byte IDX file into an array shaped by its header."""
    with open(filepath, 'rb') as f:
        magic, = struct.unpack('>I', f.read(4))
        if magic != expected_magic:
            raise ValueError(f"{filepath}: magic number {magic}, expected {expected_magic}")

        ndim = _IDX_MAGIC[magic]
        shape = struct.unpack(f'>{ndim}I', f.read(4 * ndim))
        data = np.frombuffer(f.read(), dtype=np.uint8)

    count = int(np.prod(shape))
    if data.size < count:
        raise ValueError(f"{filepath}: expected {count} values, found {data.size}")
    return data[:count].reshape(shape)


def load_csv(filepath, input_size, target_size):
    """
    Load a dataset from CSV: each row holds input_size input values
    followed by target_size target values.

    Returns:
        Tuple (X, Y) of float32 arrays, or None if the file cannot be read,
        is not numeric CSV, or has fewer than input_size + target_size columns
    """
    try:
        data = np.loadtxt(filepath, delimiter=',', dtype=np.float32, ndmin=2)
    except (OSError, ValueError) as e:
        logger.error("Could not read %s: %s", filepath, e)
        return None

    if data.shape[1] < input_size + target_size:
        logger.error("%s: expected %d columns, got %d",
                     filepath, input_size + target_size, data.shape[1])
        return None

    return data[:, :input_size], data[:, input_size:input_size + target_size]


def save_csv(filepath, X, Y):
    """Write (X, Y) as CSV rows of inputs followed by targets."""
    data = np.hstack([np.asarray(X, dtype=np.float32), np.asarray(Y, dtype=np.float32)])
    np.savetxt(filepath, data, delimiter=',', fmt='%f')


def one_hot_encode(labels, num_classes=None):
    """
    Integer class labels to float32 one-hot rows.

    Args:
        labels: Shape (N,)
        num_classes: Width of each row; max(labels) + 1 if None
    """
    labels = np.asarray(labels, dtype=int)
    if num_classes is None:
        num_classes = int(labels.max()) + 1

    return np.eye(num_classes, dtype=np.float32)[labels]


def create_batches(X, y, batch_size, shuffle=True, rng=None):
    """
    Yield (X_batch, y_batch) slices of at most batch_size samples.

    With shuffle=True the samples are visited in a random order (drawn from
    `rng`, or np.random if None); X and y stay paired.
    """
    order = np.arange(len(X))
    if shuffle:
        order = (np.random if rng is None else rng).permutation(len(X))

    for start in range(0, len(order), batch_size):
        idx = order[start:start + batch_size]
        yield X[idx], y[idx]


def accuracy_score(y_true, y_pred):
    """Fraction of matching classes; one-hot/probability rows are argmaxed."""
    y_true = np.asarray(y_true)
    y_pred = np.asarray(y_pred)
    if y_true.ndim > 1:
        y_true = y_true.argmax(axis=1)
    if y_pred.ndim > 1:
        y_pred = y_pred.argmax(axis=1)

    return float(np.mean(y_true == y_pred))


def train_test_split(X, y, test_size=0.2, shuffle=True, random_state=None):
    """
    Split (X, y) into train and test parts.

    The first int(N * test_size) samples of the (optionally shuffled) order
    form the test part.

    Returns:
        X_train, X_test, y_train, y_test
    """
    n_test = int(len(X) * test_size)
    order = np.arange(len(X))
    if shuffle:
        order = np.random.default_rng(random_state).permutation(len(X))

    test_idx, train_idx = order[:n_test], order[n_test:]
    return X[train_idx], X[test_idx], y[train_idx], y[test_idx]


def set_random_seed(seed):
    """Seed NumPy's global generator (used when no rng is passed)."""
    np.random.seed(seed)
    logger.debug("Random seed set to %d", seed)
