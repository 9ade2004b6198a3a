"""Application layer: ports and use cases for the GELF send pipeline."""
