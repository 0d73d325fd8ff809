"""Allow ``python -m prockitty``."""

from prockitty.cli import main

raise SystemExit(main())
