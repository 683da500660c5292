#!/usr/bin/env python3
"""
DQLBench - Entry Point

This file provides a convenient way to run the harness
directly with `python main.py` instead of the `dqlbench` script.
"""

from dqlbench.interface.cli.main import main

if __name__ == "__main__":
    main()
