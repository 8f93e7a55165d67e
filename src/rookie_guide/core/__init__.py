"""Rookie Guide core: domain models, the progress engine and storage.

Architecture::

    Layer 1 -- Types & Errors
        errors.py          Error hierarchy (GuideError and subclasses)
        models.py          Frozen dataclasses: Template, UserChecklist, ...
        protocols.py       Connection, TemplateStore, PersistenceGateway
        logging.py         structlog configuration and context helpers

    Layer 2 -- Storage
        sqlite_conn.py     sqlite3 adapter satisfying Connection
        connection.py      create_connection() from URLs / paths
        repository.py      BaseRepository (transactions, error translation)
        repositories/      TemplateRepository, ChecklistRepository
        schema/            Numbered .sql migrations
        migrations/        MigrationRunner (_migrations table)

    Layer 3 -- Behaviour
        retry.py           ExponentialBackoff / RetryContext
        checklists.py      ChecklistProgressEngine + compute_progress
"""
