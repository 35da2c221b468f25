"""Validation of the contributor and resource READMEs in a Coder registry."""

__version__ = "0.1.0"
