"""Allow ``python -m claudemd``."""

from claudemd.pipeline import main

main()
