import sys

from autobk.cli import main

if __name__ == "__main__":
    sys.exit(main())
