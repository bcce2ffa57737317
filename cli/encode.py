#!/usr/bin/env python3
"""
VITC Encoder CLI - Generate VITC lines as raw video frames.
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from vitc.encoder import main


if __name__ == "__main__":
    main()
