import sys

from autoflow.cli import main

sys.exit(main())
