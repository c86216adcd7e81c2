"""Command-line interface."""
from greeksurface.main import main

if __name__ == "__main__":
    main()
