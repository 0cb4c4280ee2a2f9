import sys

from reduce_worker.cli import main

sys.exit(main())
