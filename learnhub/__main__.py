"""Allow ``python -m learnhub``."""

from learnhub.cli.main import main

if __name__ == "__main__":
    main()
