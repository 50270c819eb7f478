"""SealDrop: passphrase-sealed file drop.

Files are encrypted with a key stretched from a passphrase, framed into a
single self-describing blob and stored under a random id.
"""

__version__ = "0.1.0"
