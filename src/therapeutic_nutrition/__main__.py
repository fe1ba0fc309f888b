"""Run with: python -m therapeutic_nutrition"""

import sys

from therapeutic_nutrition.cli import main

if __name__ == "__main__":
    sys.exit(main())
