"""CodePipeline components."""
