"""
Grid features: the cluster adjacency graph.
"""
