"""chococtl - Chocolatey-style package installation engine.

Resolves package sources, fetches and unpacks payloads, runs installers
and exposes installed executables through shims.
"""

__version__ = "0.1.0"
