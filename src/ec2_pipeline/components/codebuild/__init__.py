"""CodeBuild components."""
