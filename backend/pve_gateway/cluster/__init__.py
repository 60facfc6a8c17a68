"""Cluster health and resource summary."""
