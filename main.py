#main.py
import sys

from mpris_presence.app import main

if __name__ == "__main__":
    sys.exit(main())
