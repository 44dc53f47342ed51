"""Health assessment, JSON merge patches, managed fields and sync types for Kubernetes resources."""

__version__ = "0.1.0"