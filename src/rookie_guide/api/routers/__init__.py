"""API routers: templates, checklists and health probes."""
