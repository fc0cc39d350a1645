"""
Allow running as module: python -m evolve_sim
"""

import sys

if __name__ == "__main__":
    from .main import main
    sys.exit(main())
