"""Incremental extraction engine.

This package resolves reporting periods, downloads raw documents,
transforms them into validated records, and maintains per-source state.
"""
