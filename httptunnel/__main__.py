import sys

from httptunnel.cli import main

sys.exit(main())
