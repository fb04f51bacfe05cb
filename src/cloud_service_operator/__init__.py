"""Cloud Service Operator - Kubernetes operator for managing AWS resources."""

__version__ = "0.1.0"
