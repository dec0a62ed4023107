import sys

from commit_grep.cli import main

sys.exit(main())
