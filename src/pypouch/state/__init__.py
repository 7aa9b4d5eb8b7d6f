"""State/store layer.

This package holds the single authoritative value cell, the commit/notify
algorithm, and the plugin contract every extension is written against.
"""
