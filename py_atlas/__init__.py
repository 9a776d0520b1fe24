"""Globe texture and connection-arc generation for the surveillance entity atlas."""

__version__ = "0.1.0"
