"""OCI Vault secrets and key management clients."""
