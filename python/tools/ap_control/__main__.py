#!/usr/bin/env python3
"""
Entry point for running the access point controller package directly.
"""

from .cli import main

if __name__ == "__main__":
    main()
