import sys

from src.loadgen.cli import main

sys.exit(main())
