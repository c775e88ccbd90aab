"""MinIO remote service clients."""
