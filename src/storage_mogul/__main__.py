"""Allow ``python -m storage_mogul``."""

import sys

from .interface.cli import main

sys.exit(main())
