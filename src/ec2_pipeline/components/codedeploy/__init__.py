"""CodeDeploy components."""
