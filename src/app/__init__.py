"""Front ends for the extraction engine."""
