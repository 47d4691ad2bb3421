#!/usr/bin/env python3
"""
Marchés Publics Dashboard - Entry Point

Command-line client for the public procurement records backend.

Usage:
    python main.py <command> [options]

Examples:
    python main.py login user@example.org
    python main.py list --organization commune
    python main.py tree 12

For more options:
    python main.py --help
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from marches_dashboard.cli import main

if __name__ == "__main__":
    main()
