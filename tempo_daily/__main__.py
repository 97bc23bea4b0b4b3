import sys

from tempo_daily.cli import main

sys.exit(main())
