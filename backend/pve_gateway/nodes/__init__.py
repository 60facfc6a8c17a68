"""Cluster node listing and detail."""
