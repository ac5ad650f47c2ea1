"""python -m mobkit"""

import sys

from mobkit.cli import main

sys.exit(main())
