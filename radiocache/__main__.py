import sys

from radiocache.cli import main


sys.exit(main())
