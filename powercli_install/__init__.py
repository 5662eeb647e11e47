"""PowerCLI installer — install-method fallback resolution for VMware.PowerCLI."""

__version__ = "0.1.0"
