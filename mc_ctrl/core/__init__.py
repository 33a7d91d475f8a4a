"""Status aggregation, response parsing and command dispatch."""
