"""gardenctl — hierarchical content store for a personal digital garden."""

__version__ = "0.1.0"
