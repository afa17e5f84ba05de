"""OmniCRM backend: permission engine and CRM API."""

__version__ = "0.1.0"
