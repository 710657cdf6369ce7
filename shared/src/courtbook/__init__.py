"""Payment core for the Courtbook sports-venue booking site."""
