"""Git diff review toolkit: diffs, partial staging, watching, review comments and GitHub access."""

__version__ = "0.1.0"