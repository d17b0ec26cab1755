# Environment variables
DB_URL_ENV = "MEMORY_GRAPH_DB_URL"
DB_PATH_ENV = "DATABASE_PATH"
LOG_LEVEL_ENV = "LOG_LEVEL"
LOG_DIR_ENV = "LOG_DIR"

# Defaults
DEFAULT_DB_FILENAME = "memory_graph.db"
DEFAULT_LOG_DIR = "logs"
LOG_FILENAME = "memory_graph.log"

SERVER_NAME = "memory-graph"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000
