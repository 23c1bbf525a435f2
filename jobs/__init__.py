"""Vehicle ownership report jobs."""
