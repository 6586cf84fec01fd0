"""Command-line interface module for SGF proof-tree loading.

This module provides CLI tools to summarize, dump, export and validate proof
trees with progress and memory reporting.
"""

from .main import main

__all__ = ["main"]
