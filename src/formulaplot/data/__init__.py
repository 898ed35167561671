"""
Tabular input for plotting.

Classes available at the top level include:
- Dataset: immutable table of observations with per-column kinds
- read_csv: load a comma-separated file into a Dataset
"""

from .dataset import Dataset, infer_column_kind, read_csv

__all__ = ["Dataset", "read_csv", "infer_column_kind"]
