"""Entry point for running the payroll CLI."""

import sys

from payroll_core.cli import main

if __name__ == "__main__":
    sys.exit(main())
