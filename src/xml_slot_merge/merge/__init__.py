"""Merging of fragment documents into host document slots."""

from .engine import FragmentPair, MergeEngine, merge_fragments

__all__ = [
    "FragmentPair",
    "MergeEngine",
    "merge_fragments",
]
