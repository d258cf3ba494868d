"""Speech provider client and the preview cache."""
