import sys

from airwatch.cli import main

sys.exit(main())
