from .mnist import (
    IMAGE_SIZE,
    NUM_PIXELS,
    NUM_CLASSES,
    DEFAULT_VALIDATION_SIZE,
    DigitSplit,
    DigitDatasets,
    flatten_images,
    one_hot,
    make_split,
    subset,
    split_validation,
    load_mnist_arrays,
    load_mnist,
)
from .iterator import (
    Batch,
    BatchIterator,
    iterate_batches,
    num_batches,
)
from .records import (
    digit_to_example,
    write_digit_records,
    make_digit_parser,
    read_digit_records,
    count_records,
)
from .seed import set_global_seed, set_tf_deterministic
from .tf_config import configure_tf_cpu, set_tf_log_level

__all__ = [
    # Constants
    'IMAGE_SIZE',
    'NUM_PIXELS',
    'NUM_CLASSES',
    'DEFAULT_VALIDATION_SIZE',

    # Core types
    'DigitSplit',
    'DigitDatasets',
    'Batch',

    # Feature/label matrices
    'flatten_images',
    'one_hot',
    'make_split',
    'subset',
    'split_validation',
    'load_mnist_arrays',
    'load_mnist',

    # Batch feeding
    'BatchIterator',
    'iterate_batches',
    'num_batches',

    # TFRecord serialization
    'digit_to_example',
    'write_digit_records',
    'make_digit_parser',
    'read_digit_records',
    'count_records',

    # Reproducibility and runtime
    'set_global_seed',
    'set_tf_deterministic',
    'configure_tf_cpu',
    'set_tf_log_level',
]
