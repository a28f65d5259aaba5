"""SQL model dependency graphs, lineage, a SQLite adapter, configuration, documentation records and project scaffolding."""

__version__ = "0.1.0"