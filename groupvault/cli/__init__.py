"""GroupVault command line interface."""
