import sys

from gittenure.cli import main

sys.exit(main())
