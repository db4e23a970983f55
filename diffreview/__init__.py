"""diffreview: line-anchored pull request review with a language model."""

__version__ = "0.1.0"
