"""Allow ``python -m nod``."""

from nod.cli import main

raise SystemExit(main())
