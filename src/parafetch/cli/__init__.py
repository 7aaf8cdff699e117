"""parafetch command-line interface."""
