"""Allow running the test client with ``python -m kalcium_client``."""

from .main import main

if __name__ == "__main__":
    main()
