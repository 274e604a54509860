"""Utility modules for the Argo Rollouts Manager."""
