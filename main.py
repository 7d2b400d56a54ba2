#!/usr/bin/env python3
"""
Repository Inventory Fetcher

Main entry point for the repository inventory fetcher.
"""

from repo_inventory.cli import main

if __name__ == '__main__':
    main()
