"""Infrastructure adapters for the analysis pipeline."""
