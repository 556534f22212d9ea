"""Allow ``python -m spellcheck_control``."""

import sys

from spellcheck_control.cli import main

sys.exit(main())
