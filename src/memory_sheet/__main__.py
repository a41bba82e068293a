import sys

from memory_sheet.cli import main

sys.exit(main())
