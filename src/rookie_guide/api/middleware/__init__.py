"""API middleware: request ids, timing, API-key gate and error mapping."""
