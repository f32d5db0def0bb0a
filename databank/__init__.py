# Databank package - uniform document storage adapters
#
# Modules:
# - config: Application settings
# - logging: Structured logging
# - storage: Databank interface and backends (MongoDB, in-memory)
