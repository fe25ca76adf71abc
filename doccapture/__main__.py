"""Entry point for ``python -m doccapture``."""

from doccapture.cli import main

if __name__ == "__main__":
    main()
