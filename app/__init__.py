"""
IT Asset Management API

Multi-tenant tracking of hardware assets, software licenses, accessories
and the people who hold them, with CSV import/export, an append-only
audit log and CO2 footprint estimates.
"""

__version__ = "1.0.0"
