from .ingestion import ConnectionState, IngestionServer
