"""Allow running as `python -m versecache`."""
import sys

from .cli import main

sys.exit(main())
