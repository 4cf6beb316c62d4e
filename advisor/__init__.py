"""Conversational advisor for choosing ESRI map app templates and datasets."""

__version__ = "0.1.0"
