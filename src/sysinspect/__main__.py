"""Allow `python -m sysinspect`."""

from sysinspect.cli import main

main()
