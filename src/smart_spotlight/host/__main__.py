"""`python -m smart_spotlight.host` runs the host daemon."""

from smart_spotlight.host.main import main


if __name__ == "__main__":
    main()
