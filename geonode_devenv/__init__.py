"""GeoNode development environment provisioner."""

__version__ = "0.1.0"
