import sys

from nixsearch.main import main

sys.exit(main())
