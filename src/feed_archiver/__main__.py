import sys

from feed_archiver.cli import main

sys.exit(main())
