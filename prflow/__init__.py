"""prflow: pull request and milestone bookkeeping for GitHub repositories."""

__version__ = "0.1.0"
