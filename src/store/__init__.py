"""Storage layer.

This module persists raw artifacts, per-source extraction state, and
the CSV output tables written by extraction and reindex runs.
"""
