"""Static site generator for Typst documents with a live-reload dev server."""

__version__ = "0.1.0"
