"""Allow ``python -m coteacher.cli`` execution."""

from coteacher.cli.commands import main

main()
