"""Console client for the expense manager."""
