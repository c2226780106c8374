"""tasukun - personal task manager API with Slack and Google Calendar integrations."""
