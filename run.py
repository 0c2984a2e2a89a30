import sys

from storybook.app import main

if __name__ == "__main__":
    sys.exit(main())
