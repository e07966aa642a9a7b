import sys

from setter_injection.app import main

sys.exit(main())
