"""DocVault Engine - Configuration, errors, execution context, audit logging."""
