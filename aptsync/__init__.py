"""aptsync: keeps a git-hosted Debian repository indexed, signed and published."""

__version__ = "1.0.0"
