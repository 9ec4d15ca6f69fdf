"""fieldnotes — authoring toolkit for a static blog's content store."""

__version__ = "0.3.0"
