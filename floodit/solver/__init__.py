"""
Solver module for the flood constraint system.

This module provides the backend interface, the PuLP/CBC backend and the
decoding of solved variable vectors.
"""
