"""Signing identity resolution for OCI API calls."""
