"""Row sampling built on the random line reader."""

from .sampler import RowSampler

__all__ = ["RowSampler"]
