"""
Domain layer for the Lodi package tracking system.
Contains the record store, change notification and the logistics engine,
separated from table definitions in lodi.data.
"""
