"""Argo Rollouts Manager - Kubernetes operator deploying the Argo Rollouts controller."""

__version__ = "0.1.0"
