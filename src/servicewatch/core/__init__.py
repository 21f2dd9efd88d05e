"""Core observability components: logging, metrics, timing and health."""
