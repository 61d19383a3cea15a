"""repscope: search-reputation scoring and background parsing jobs."""

__version__ = "0.1.0"
