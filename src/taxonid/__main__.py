"""TaxonID main entry point.

This module provides the entry point for running the package as a script.
"""

import sys

from taxonid.cli import main

if __name__ == "__main__":
    sys.exit(main())
