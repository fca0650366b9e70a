import sys

from workout_log.main import main

if __name__ == "__main__":
    sys.exit(main())
