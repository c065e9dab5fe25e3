import sys

from coalesce_memory.scripts.come import main

sys.exit(main())
