"""EC2 components."""
