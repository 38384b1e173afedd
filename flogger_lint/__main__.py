"""Entry point for ``python -m flogger_lint`` and the ``flogger-lint`` script."""

from __future__ import annotations

import sys

from flogger_lint.main import main

if __name__ == "__main__":
    sys.exit(main())
