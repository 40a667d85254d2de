"""Allow ``python -m lead_importer``."""
import sys

from .cli import main

if __name__ == "__main__":  # pragma: no cover - module entry point
    sys.exit(main(prog="python -m lead_importer"))
