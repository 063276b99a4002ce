"""Allow ``python -m concordance_browser``."""

import sys

from concordance_browser.app import main

sys.exit(main())
