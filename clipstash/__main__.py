"""Allow `python -m clipstash`."""

import sys

from clipstash.cli.main import main

sys.exit(main())
