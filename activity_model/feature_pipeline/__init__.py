"""
Feature pipeline for the activity report.

Public API for loading, cleaning, and label-encoding the sensor tables.
"""
from activity_model.feature_pipeline.load import (
    load_raw_data,
    load_datasets,
    download_dataset
)
from activity_model.feature_pipeline.cleaning import (
    drop_sparse_columns,
    drop_metadata_columns,
    clean_datasets
)
from activity_model.feature_pipeline.labels import (
    encode_labels,
    decode_labels
)

__all__ = [
    'load_raw_data',
    'load_datasets',
    'download_dataset',
    'drop_sparse_columns',
    'drop_metadata_columns',
    'clean_datasets',
    'encode_labels',
    'decode_labels',
]
