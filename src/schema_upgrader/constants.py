"""Constants used throughout Schema-Upgrader."""

# Schema versions this codebase runs against without an upgrade
SUPPORTED_SCHEMA_VERSIONS = frozenset({"2.5.12"})

# State database table names
DB_TABLE_METADATA = "metadata"
DB_TABLE_PREFERENCES = "preferences"
DB_TABLE_USERS = "users"
DB_TABLE_FILES = "files"

# Metadata keys
METADATA_KEY_SCHEMA_VERSION = "schema_version"

# State metadata document ID (fixed ID for schema version tracking)
DB_METADATA_DOC_ID = 1

# Preference keys
PREF_DISK_USAGE = "disk_usage"

# User types
USER_TYPE_ADMIN = "A"
USER_TYPE_SUPERADMIN = "S"

# Logins with special handling during admin promotion
ADMIN_LOGIN = "admin"
SOURCEFABRIC_ADMIN_LOGIN = "sourcefabric_admin"

# SQL upgrade scripts live in <sql_dir>/<prefix><version>/<filename>
SQL_SCRIPT_DIR_PREFIX = "airtime_"
SQL_SCRIPT_FILENAME = "upgrade.sql"

# Benign psql notices dropped from upgrade script output
PSQL_IGNORED_NOTICES = ("will create implicit sequence", "will create implicit index")

# psql output lines logged at warning level
PSQL_WARNING_PREFIXES = ("ERROR:", "WARNING:", "FATAL:")

# Default psql timeout (seconds), 0 disables it
PSQL_DEFAULT_TIMEOUT = 600.0

# Environment variable overriding the config path
CONFIG_ENV_VAR = "SCHEMA_UPGRADER_CONFIG"
DEFAULT_CONFIG_PATH = "~/.config/schema-upgrader/config.toml"

# Logging configuration
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
