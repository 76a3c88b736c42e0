import sys

from cargo_explain.cli import main

sys.exit(main())
