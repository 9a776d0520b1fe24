"""HTTP surface for globe rendering data."""
