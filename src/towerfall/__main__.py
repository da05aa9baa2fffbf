"""
Run the towerfall CLI.

Usage:
    python -m towerfall apply --effects fx.json
"""

import sys

from .interface.cli import main

sys.exit(main())
