"""Client for viewing and downloading school note attachments."""
