"""
Flood-it solver.

Finds minimal move sequences for Flood-it puzzles by encoding the game as a
mixed-integer program over a cluster graph and probing candidate lengths.

Typical use:
    from floodit.features.clusters import build_cluster_graph
    from floodit.search.driver import run_search
    from floodit.search.modes import Min

    graph, _ = build_cluster_graph(grid)
    result = run_search(graph, Min())
"""
