"""
Configuration constants for the Passlane password manager.
"""

import os

# Application Metadata
APP_VERSION = "1.4.0"  # Use: Current version of the application. Type: str. Range: Semantic versioning string (e.g., "1.0.0")
APP_NAME = "passlane"  # Use: Name of the application, also used as the keychain service prefix. Type: str. Range: Any valid string.

# Security Settings
SALT_SIZE = 16  # Use: Size of the per-record salt in bytes for key derivation. Type: int. Range: Recommended to be at least 16 bytes (128 bits) for security.
KEY_SIZE = 32  # Use: Size of the encryption key in bytes. Corresponds to AES-256. Type: int. Range: 16 (AES-128), 24 (AES-192), or 32 (AES-256) bytes.
NONCE_SIZE = 12  # Use: Size of the Nonce (Number used once) in bytes for AES-GCM. Type: int. Range: 12 bytes (96 bits) is the recommended size for GCM.
TAG_SIZE = 16  # Use: Size of the authentication tag in bytes for AES-GCM. Type: int. Range: 16 bytes (128 bits) is the recommended size for GCM.
ARGON2_TIME_COST = int(os.environ.get("PASSLANE_ARGON2_TIME_COST", "2"))  # Use: Argon2id time cost parameter for hashing and key derivation. Type: int. Range: Typically 1 to 10.
ARGON2_MEMORY_COST = int(os.environ.get("PASSLANE_ARGON2_MEMORY_COST", "19456"))  # Use: Argon2id memory cost in KiB. Derived once per record, so kept at the OWASP minimum (19 MiB). Type: int. Range: At least 19456.
ARGON2_PARALLELISM = int(os.environ.get("PASSLANE_ARGON2_PARALLELISM", "1"))  # Use: Argon2id parallelism parameter. Type: int. Range: Typically 1 to 8.

# Password Rules
PASSWORD_MIN_LENGTH = 8  # Use: Minimum length accepted for a stored password (e.g. one taken from the clipboard). Type: int. Range: Positive integer.
PASSWORD_MAX_LENGTH = 128  # Use: Maximum length accepted for a stored password. Type: int. Range: Positive integer.
PASSWORD_GENERATOR_DEFAULT_LENGTH = 15  # Use: Default length for generated passwords. Type: int. Range: PASSWORD_MIN_LENGTH to PASSWORD_MAX_LENGTH.
PASSWORD_GENERATOR_SYMBOLS = "!#$%&()*+-./:;<=>?@[]^_{|}~"  # Use: Symbol characters used by the generator. Type: str. Range: Any string of printable characters.
PASSWORD_GENERATOR_AMBIGUOUS_CHARS = "0O1lI"  # Use: Characters excluded from generated passwords. Type: str. Range: Any string of characters.

# UI Settings
TABLE_PASSWORD_HIDDEN_TEXT = "••••••••"  # Use: Placeholder shown in the table for passwords when not in verbose mode. Type: str. Range: Any string.
PROMPT_MASTER_PASSWORD = "Please enter master password: "  # Use: Prompt for the master password. Type: str. Range: Any string.
PROMPT_RETYPE_MASTER_PASSWORD = "Re-enter master password: "  # Use: Prompt for confirming a new master password. Type: str. Range: Any string.
SELECT_INDEX_PROMPT = "Enter a row number from the table above, or press q to exit: "  # Use: Prompt used when picking one of several matches. Type: str. Range: Any string.

# Online Vault Settings
API_URL = os.environ.get("PASSLANE_API_URL", "https://passlanevault.com/api/graphql")  # Use: GraphQL endpoint of the online vault. Type: str. Range: Valid HTTPS URL.
AUTH_URL = os.environ.get("PASSLANE_AUTH_URL", "https://auth.passlanevault.com")  # Use: Base URL of the OAuth2 authorization server. Type: str. Range: Valid HTTPS URL.
AUTH_CLIENT_ID = os.environ.get("PASSLANE_CLIENT_ID", "passlane-cli")  # Use: OAuth2 client id of the command line app. Type: str. Range: Any string.
AUTH_REDIRECT_URI = os.environ.get("PASSLANE_REDIRECT_URI", "urn:ietf:wg:oauth:2.0:oob")  # Use: Redirect URI for the out-of-band authorization code flow. Type: str. Range: Valid URI.
AUTH_SCOPES = ("openid", "profile", "email", "offline_access")  # Use: OAuth2 scopes requested on login. Type: tuple[str, ...]. Range: Scopes known to the authorization server.
HTTP_TIMEOUT_SECONDS = 10.0  # Use: Timeout for requests to the online vault and the auth server. Type: float. Range: Positive number.

# Logging
LOG_LEVEL = os.environ.get("PASSLANE_LOG_LEVEL", "WARNING")  # Use: Default log level for the command line app. Type: str. Range: DEBUG, INFO, WARNING, ERROR.
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"  # Use: Log record format. Type: str. Range: Any logging format string.

# File and Directory Names
CONFIG_DIR_NAME = ".passlane"  # Use: Name of the hidden directory within the user's home directory where Passlane stores its files. Type: str. Range: Any valid directory name.
HOME_DIR = os.environ.get("PASSLANE_HOME", os.path.join(os.path.expanduser("~"), CONFIG_DIR_NAME))  # Use: Directory holding the vault files. Type: str. Range: Any writable directory path.
MASTER_PASSWORD_FILE = ".master_pwd"  # Use: Filename for the master password hash. Type: str. Range: Any valid filename.
STORE_FILE = ".store"  # Use: Filename for the encrypted credentials. Type: str. Range: Any valid filename.
STORE_TEMP_SUFFIX = "_new"  # Use: Suffix of the sibling file written before the store is atomically replaced. Type: str. Range: Any filename-safe string.
ACCESS_TOKEN_FILE = ".access_token"  # Use: Filename for the online vault access token. Type: str. Range: Any valid filename.
ENCRYPTION_KEY_FILE = ".encryption_key"  # Use: Filename holding the master password while the vault is unlocked. Type: str. Range: Any valid filename.
CSV_HEADERS = ("service", "username", "password")  # Use: Column order of the store and of exported CSV files. Type: tuple[str, ...]. Range: Fixed.

# CSV Import Settings
CSV_HEADER_MAPPINGS = {  # Use: Maps record fields to common CSV header variations for import. Type: dict[str, list[str]]. Range: Dictionary with string keys and lists of strings as values.
    'service': ['service', 'name', 'site', 'website', 'title', 'url'],
    'username': ['username', 'user', 'login', 'email', 'account'],
    'password': ['password', 'pass', 'pwd'],
}
