import sys

from constructor_injection.app import main

sys.exit(main())
