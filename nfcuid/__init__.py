"""
nfcuid - types the UID of NFC tags as keyboard input.
"""

__version__ = "1.2.1"

# Release source for the update check
GITHUB_OWNER = "Nemorit-UG"
GITHUB_REPO = "nfcuid"

APP_NAME = "nfcuid"
