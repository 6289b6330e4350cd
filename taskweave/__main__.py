import sys

from taskweave.cli import main

sys.exit(main())
