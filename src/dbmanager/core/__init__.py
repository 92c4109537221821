"""dbmanager core -- backends, dialects and the schema/data engine.

Architecture::

    Layer 1 -- Types & Errors
        errors.py          Structured error hierarchy (DbManagerError, ...)
        types.py           ColumnType, descriptors, pages, row normalization
        logging.py         structlog configuration

    Layer 2 -- Connectivity
        adapters/          SQLAlchemy engine + pool per database type
        dialect.py         SQL text per database type (3 backends)
        config.py          pydantic models for configured databases
        backends.py        Backend + BackendRegistry (logical name -> pool)

    Layer 3 -- Engine
        validators.py      Input checks that never touch a backend
        catalog.py         Table/column introspection and ``id`` repair
        schema.py          create / alter / drop tables
        data.py            paginated reads and row mutations

Every engine function raises a :class:`~dbmanager.core.errors.DbManagerError`
subclass; the ``ops`` layer turns those into result envelopes.
"""
