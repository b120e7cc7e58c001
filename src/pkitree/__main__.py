# pkitree/__main__.py

from pkitree.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
