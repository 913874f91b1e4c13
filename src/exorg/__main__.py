import sys

from exorg.cli import main

sys.exit(main())
