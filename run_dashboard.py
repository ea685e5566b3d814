#!/usr/bin/env python3
"""
Wrapper script to start the Streamlit dashboard from the root directory.

Usage:
    python run_dashboard.py

Set STOCK_TRACKER_CONFIG to point at a providers.json other than ./providers.json.
"""
import sys
import os

from streamlit.web import cli as stcli

if __name__ == "__main__":
    script = os.path.join(os.path.dirname(os.path.abspath(__file__)), "py_dashboard", "run_dashboard.py")
    sys.argv = ["streamlit", "run", script]
    sys.exit(stcli.main())
