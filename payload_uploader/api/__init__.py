"""HTTP surface for the upload pipeline."""
