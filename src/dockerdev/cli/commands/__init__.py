"""Click command groups registered on the dockerdev CLI."""
