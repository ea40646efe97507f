import sys

from sheetcalc.cli import main

sys.exit(main())
