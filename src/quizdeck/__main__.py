import sys

from quizdeck.cli import main

sys.exit(main())
