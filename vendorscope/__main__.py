import sys

from vendorscope.cli import main

sys.exit(main())
