"""Optional collaborators around the runner: stores, repositories, triggers, compensation."""
