"""Kubernetes controller that manages AWS IAM roles for ServiceAccounts."""

__version__ = "0.1.0"
