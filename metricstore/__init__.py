"""In-memory storage of node and container resource metrics and usage computation."""

__version__ = "0.1.0"