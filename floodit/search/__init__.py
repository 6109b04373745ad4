"""
Search strategies over candidate solution lengths.
"""
