#!/usr/bin/env python3
"""
Wrapper script to print the position report from the root directory.
Delegates to py_positions.portfolio_report.main()

Usage:
    python run_portfolio_report.py --ledger data/ledger.json --price 600519=1700 --fetch
"""
import sys
import os

# Ensure the root directory is in PYTHONPATH so we can import the package
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from py_positions.portfolio_report import main

if __name__ == "__main__":
    sys.exit(main())
