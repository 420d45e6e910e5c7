"""JSON import/export of a service's keys and translations."""
