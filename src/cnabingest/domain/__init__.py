"""Domain layer for cnabingest.

Services are imported from their modules directly; this package does not
re-export them so the database layer can import entities without cycles.
"""
