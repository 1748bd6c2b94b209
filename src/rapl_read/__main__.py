"""Allow ``python -m rapl_read``."""

from rapl_read.cli import main

raise SystemExit(main())
