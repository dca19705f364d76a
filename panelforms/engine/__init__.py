"""panelforms Engine — Errors, configuration and the interaction log."""
