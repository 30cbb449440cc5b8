"""Allow ``python -m liveupdate``."""

import sys

from liveupdate.app.cli import main

sys.exit(main())
