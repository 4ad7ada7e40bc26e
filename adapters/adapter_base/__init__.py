"""Protocol client capability shared by all adapters."""
