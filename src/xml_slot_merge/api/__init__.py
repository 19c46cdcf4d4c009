"""Collaborator-facing pipeline API."""

from .pipeline import FragmentLocations, assemble, render

__all__ = [
    "FragmentLocations",
    "assemble",
    "render",
]
