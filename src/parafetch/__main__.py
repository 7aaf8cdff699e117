"""Allow ``python -m parafetch``."""

from parafetch.cli.app import app

app()
