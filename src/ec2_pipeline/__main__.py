"""Main entry point for the ec2_pipeline CLI."""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
