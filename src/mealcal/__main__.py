"""Allow `python -m mealcal` to invoke the CLI."""

from mealcal.cli import main

if __name__ == "__main__":
    main()
