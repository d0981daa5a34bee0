"""Data types used throughout TaxonID."""
