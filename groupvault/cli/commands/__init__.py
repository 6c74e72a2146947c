"""GroupVault CLI commands."""
