"""Feature packages: access, audit, catalog, transfer and health."""
