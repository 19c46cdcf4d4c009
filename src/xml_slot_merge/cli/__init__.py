"""Command-line interface module for XML Slot Merge.

This module provides the ``xml-slot-merge`` tool for merging fragment
documents into host documents and checking host documents' slots.
"""

from .main import main

__all__ = ["main"]
