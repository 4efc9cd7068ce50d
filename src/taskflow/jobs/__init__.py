"""Background job entry points executed by the RQ worker."""
