"""
Shared pytest configuration.
"""

import sys
from pathlib import Path

# Make the project root importable when running without an installed package
project_root = Path(__file__).parent.parent.absolute()
sys.path.insert(0, str(project_root))
