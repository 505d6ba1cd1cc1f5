"""Allow ``python -m hierrorchy``."""

from hierrorchy.main import main

if __name__ == "__main__":
    raise SystemExit(main())
