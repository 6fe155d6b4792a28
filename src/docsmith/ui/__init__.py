"""User interfaces built on top of the render pipeline."""
