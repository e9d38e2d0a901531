"""Allow ``python -m cleanforge``."""

import sys

from cleanforge.cli import main

sys.exit(main())
