"""Allow running as `python -m tron_deployments`."""

import sys

from .cli import main

sys.exit(main())
