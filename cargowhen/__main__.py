import sys

from cargowhen.cli import main

sys.exit(main())
