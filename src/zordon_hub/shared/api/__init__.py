"""HTTP plumbing shared across routers."""
