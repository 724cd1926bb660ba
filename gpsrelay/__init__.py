"""gpsrelay - real-time GPS location sharing relay."""

__version__ = "0.1.0"
