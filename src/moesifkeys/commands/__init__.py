"""Built-in CLI commands registered by :mod:`moesifkeys.app`."""
