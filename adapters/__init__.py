"""Protocol adapters used by the exporter runtime."""
