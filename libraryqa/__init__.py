"""Library Q&A: grounded question answering over a fixed book catalog."""

__version__ = "1.0.0"
