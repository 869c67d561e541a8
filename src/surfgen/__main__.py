import sys

from surfgen.cli import main

sys.exit(main())
