"""Allow running todosh with ``python -m todosh``."""

from .cli import main

if __name__ == "__main__":
    main()
