"""Allow ``python -m interceptca``."""

from interceptca.cli.main import main

main()
