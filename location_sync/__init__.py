"""
location-sync: periodic migration of location documents into PostgreSQL.
"""

__version__ = "0.1.0"
