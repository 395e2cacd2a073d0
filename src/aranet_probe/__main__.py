"""Allow ``python -m aranet_probe``."""

from .cli import main

main()
