"""
Core grid types and run configuration.
"""
