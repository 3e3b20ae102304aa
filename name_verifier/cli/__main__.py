"""Allow ``python -m name_verifier.cli verify NAME ...`` execution."""
from name_verifier.cli.verify import main

main()
