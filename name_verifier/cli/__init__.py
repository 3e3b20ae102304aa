"""Command-line tools for the name verifier.

- ``python -m name_verifier.cli verify`` / ``python -m name_verifier.cli.verify``
  -- verify one or more band or song names from the terminal.
"""
