"""retrofit: structural patching of PHP plugin scaffolding."""

__version__ = "1.0.0"
