import sys

from arpwatch_container.main import main

if __name__ == "__main__":
    sys.exit(main())
