import sys

from passlane.main import main

sys.exit(main())
