"""Console rendering and command-line interface for DQLBench."""
