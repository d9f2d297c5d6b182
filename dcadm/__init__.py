"""dcadm — procedure engine for datacenter changes."""

__version__ = "0.1.0"
