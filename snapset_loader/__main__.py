import sys

from snapset_loader.cli.delete_and_load import main

if __name__ == "__main__":
    sys.exit(main())
