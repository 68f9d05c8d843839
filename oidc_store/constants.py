"""
Well-known values shared by the stores.
"""

# Authorization/token statuses.
STATUS_INACTIVE = "inactive"
STATUS_REDEEMED = "redeemed"
STATUS_REJECTED = "rejected"
STATUS_REVOKED = "revoked"
STATUS_VALID = "valid"

# Authorization types.
AUTHORIZATION_TYPE_AD_HOC = "ad-hoc"
AUTHORIZATION_TYPE_PERMANENT = "permanent"

# Token types.
TOKEN_TYPE_ACCESS_TOKEN = "access_token"
TOKEN_TYPE_AUTHORIZATION_CODE = "authorization_code"
TOKEN_TYPE_DEVICE_CODE = "device_code"
TOKEN_TYPE_ID_TOKEN = "id_token"
TOKEN_TYPE_REFRESH_TOKEN = "refresh_token"
TOKEN_TYPE_USER_CODE = "user_code"

# Application client/consent/application types.
CLIENT_TYPE_CONFIDENTIAL = "confidential"
CLIENT_TYPE_PUBLIC = "public"
CONSENT_TYPE_EXPLICIT = "explicit"
CONSENT_TYPE_EXTERNAL = "external"
CONSENT_TYPE_IMPLICIT = "implicit"
CONSENT_TYPE_SYSTEMATIC = "systematic"
APPLICATION_TYPE_NATIVE = "native"
APPLICATION_TYPE_WEB = "web"

# Decode cache namespaces, one per JSON column.
CACHE_TAG_APPLICATION_DISPLAY_NAMES = "7762c378-c113-4564-b14b-1402b3949aaa"
CACHE_TAG_APPLICATION_JSON_WEB_KEY_SET = "1e0a697d-0623-481a-927a-5e6c31458782"
CACHE_TAG_APPLICATION_PERMISSIONS = "0347e0aa-3a26-410a-97e8-a83bdeb21a1f"
CACHE_TAG_APPLICATION_POST_LOGOUT_REDIRECT_URIS = "fb14dfb9-9216-4b77-bfa9-7e85f8201ff4"
CACHE_TAG_APPLICATION_PROPERTIES = "2e3e9680-5654-48d8-a27d-b8bb4f0f1d50"
CACHE_TAG_APPLICATION_REDIRECT_URIS = "851d6f08-2ee0-4452-bbe5-ab864611ecaa"
CACHE_TAG_APPLICATION_REQUIREMENTS = "b4808a89-8969-4512-895f-a909c62a8995"
CACHE_TAG_APPLICATION_SETTINGS = "492ea63f-c26f-47ea-bf9b-b0a0c3d02656"
CACHE_TAG_AUTHORIZATION_PROPERTIES = "68056e1a-dbcf-412b-9a6a-d791c7dbe726"
CACHE_TAG_AUTHORIZATION_SCOPES = "2ba4ab0f-e2ec-4d48-b3bd-28e2bb660c75"
CACHE_TAG_SCOPE_DESCRIPTIONS = "42891062-8f69-43ba-9111-db7e8ded2553"
CACHE_TAG_SCOPE_DISPLAY_NAMES = "e17d437b-bdd2-43f3-974e-46d524f4bae1"
CACHE_TAG_SCOPE_PROPERTIES = "78d8dfdd-3870-442e-b62e-dc9bf6eaeff7"
CACHE_TAG_SCOPE_RESOURCES = "b6148250-aede-4fb9-a621-07c9bcf238c3"
CACHE_TAG_TOKEN_PROPERTIES = "d0509397-1bbf-40e7-97e1-5e6d7bc2536c"

# Separator between a cache tag and the raw column text.
CACHE_KEY_SEPARATOR = "\x1e"
