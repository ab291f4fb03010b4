"""IAM components."""
