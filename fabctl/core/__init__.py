"""Core — configuration, services and the stage pipeline."""
