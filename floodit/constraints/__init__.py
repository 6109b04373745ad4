"""
Constraint system: variable layout, linear constraint builder and the
flood encoder.
"""
