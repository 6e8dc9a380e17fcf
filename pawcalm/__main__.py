"""Allow ``python -m pawcalm``."""

from pawcalm.cli import main

if __name__ == "__main__":
    main()
