"""Package entrypoint.

`python -m smart_spotlight` launches the UI. The host runs separately
(`python -m smart_spotlight.host`).
"""

from smart_spotlight.ui.app import main


if __name__ == "__main__":
    main()
