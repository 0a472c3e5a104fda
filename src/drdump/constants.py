"""Default names and sizes shared by the dump and provisioning workflows."""

DUMP_FOLDER = "/tmp/dbdump"
DUMP_FILE_PREFIX = "drportal-dbdump-mysql-"
DUMP_FILE_SUFFIX = ".sql"
ARCHIVE_FILE_SUFFIX = ".tar.gz"

PARAM_BUCKET = "/drportal/s3/bucket"
COMMON_BUCKET_STACK_NAME = "DRPortal-Common-Bucket"
COMMON_BUCKET_TEMPLATE_KEY = "cloudformation/common-bucket.json"

GET_DATABASES_FUNCTION = "DRPortal-DbDump-MySql-GetDatabases"
GET_DATABASES_PACKAGE_KEY = "lambda/drdump-mysql.zip"
GET_DATABASES_HANDLER = "drdump.handlers.get_databases"
GET_DATABASES_RUNTIME = "python3.12"
FUNCTION_ROLE_PREFIX = "DRPortal-DbDump-MySql-Lambda"
FUNCTION_MEMORY_MB = 1024
FUNCTION_TIMEOUT_SECONDS = 10 * 60

MYSQL_DEFAULT_PORT = 3306
CONNECT_TIMEOUT_SECONDS = 10

REDACTED = "****"
