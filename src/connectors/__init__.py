"""Generic connectors.

This package holds source-independent connectors that can be configured
entirely from the sources file.
"""
