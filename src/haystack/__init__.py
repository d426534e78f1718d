"""haystack - render Markdown and Org documents into themed HTML."""

__version__ = "0.3.0"
